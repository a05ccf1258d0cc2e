"""HTTP module of nest_network.

Turns declarative request descriptors into wire requests and dispatches them.

The module includes:
- Request descriptor, body encoding variants and dispatch outcomes
- Percent-encoding and multipart/form-data encoding
- Building transport-ready requests from descriptors
- Sending built requests with `requests` and `aiohttp`
- Request / response diagnostics with bearer token masking
"""
