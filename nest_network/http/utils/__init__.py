"""Utility functions for HTTP client operations.

This package contains the pieces the HTTP client is assembled from:
- Percent-encoding of URL paths, queries and form values
- Multipart form encoding and boundary generation
- Request building from descriptors
- Request execution over the transport
- Diagnostics logging
"""
