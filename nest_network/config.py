import os

from nest_network.utils.environment import get_optional_float_env, str2bool

REQUEST_LOGGING = str2bool(os.getenv("NEST_NETWORK_REQUEST_LOGGING", "False"))
RESPONSE_LOGGING = str2bool(os.getenv("NEST_NETWORK_RESPONSE_LOGGING", "False"))
RESPONSE_DATA_LOGGING = str2bool(
    os.getenv("NEST_NETWORK_RESPONSE_DATA_LOGGING", "False")
)
# Level of the library logger when nest_network installs its own handler
LOG_LEVEL = os.getenv("NEST_NETWORK_LOG_LEVEL", "INFO").upper()
# Number of request body bytes rendered in diagnostics
LOGGED_BODY_LIMIT = int(os.getenv("NEST_NETWORK_LOGGED_BODY_LIMIT", "10000"))

# Seconds, handed to the transport as-is; None keeps the transport default
REQUEST_TIMEOUT = get_optional_float_env("NEST_NETWORK_REQUEST_TIMEOUT")
DISPATCH_MAX_WORKERS = int(os.getenv("NEST_NETWORK_DISPATCH_MAX_WORKERS", "8"))

MULTIPART_BOUNDARY_PREFIX = os.getenv(
    "NEST_NETWORK_MULTIPART_BOUNDARY_PREFIX", "Boundary-"
)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"
JSON_CONTENT_TYPE = "application/json"
MULTIPART_CONTENT_TYPE = "multipart/form-data"
CONTENT_TYPE_HEADER = "Content-Type"
AUTHORIZATION_HEADER = "Authorization"
