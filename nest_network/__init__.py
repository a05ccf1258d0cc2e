from nest_network.http.client import NetworkService
from nest_network.http.entities import (
    BuildFailure,
    BuiltRequest,
    DispatchOutcome,
    EncodableObjectBody,
    Failure,
    FormBody,
    JSONBody,
    JSONEncodableMixin,
    MultipartFormBody,
    MultipartFormElement,
    NetworkEncodable,
    NoBody,
    RequestDescriptor,
    RequestMethod,
    Success,
)
from nest_network.http.utils.request_building import build_request, build_url

try:
    from nest_network.version import __version__
except ImportError:
    __version__ = "development"
