# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

# HTTP client
"""
Typed asynchronous HTTP client:
- Endpoint descriptors and declarative decorators (@Get, @Post, @Query, @Body, @Upload, ...)
- Request building, transport execution and response decoding
- Bearer token storage with single-flight refresh
- Raw binary and multipart/form-data upload encoders
"""

from .auth import TokenStore, refresh_failed_classifier, transport_aware_classifier
from .backends.httpx import HTTPXTransport
from .builder import RequestBuilder
from .client import ErrorMapper, NetworkClient, RequestMiddleware
from .codec import Codec, PydanticJSONCodec
from .decorators import (
    Body,
    ContentType,
    Delete,
    Get,
    Header,
    HttpMapping,
    HttpRpcClientBuilder,
    Patch,
    PathParam,
    Post,
    Put,
    Query,
    RequestAttribute,
    RestClient,
    Upload,
)
from .endpoint import EndpointDescriptor, HttpMethod, Tokens, UploadPayload
from .errors import (
    DecodingError,
    EncodingError,
    HTTPError,
    HTTPErrorData,
    InvalidURL,
    NetworkError,
    RefreshFailed,
    UnknownError,
)
from .transport import (
    HTTPOutcome,
    Transport,
    TransportConnectionError,
    TransportError,
    TransportRequest,
    TransportTimeout,
)
from .upload import BinaryUploadEncoder, MultipartUploadEncoder, UploadEncoder

__all__ = [
    # Data model
    "EndpointDescriptor",
    "HttpMethod",
    "Tokens",
    "UploadPayload",
    # Pipeline
    "NetworkClient",
    "RequestBuilder",
    "ErrorMapper",
    "RequestMiddleware",
    "Codec",
    "PydanticJSONCodec",
    # Authentication
    "TokenStore",
    "refresh_failed_classifier",
    "transport_aware_classifier",
    # Uploads
    "UploadEncoder",
    "BinaryUploadEncoder",
    "MultipartUploadEncoder",
    # Declarative endpoints
    "RestClient",
    "HttpRpcClientBuilder",
    "HttpMapping",
    "RequestAttribute",
    "Get",
    "Post",
    "Put",
    "Patch",
    "Delete",
    "Query",
    "Header",
    "PathParam",
    "Body",
    "Upload",
    "ContentType",
    # Transport
    "Transport",
    "TransportRequest",
    "HTTPOutcome",
    "TransportError",
    "TransportTimeout",
    "TransportConnectionError",
    "HTTPXTransport",
    # Exceptions
    "NetworkError",
    "InvalidURL",
    "EncodingError",
    "HTTPError",
    "HTTPErrorData",
    "DecodingError",
    "RefreshFailed",
    "UnknownError",
]
