from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from restwire.config import ClientConfig
    from restwire.http.auth import TokenStore
    from restwire.http.backends.httpx import HTTPXTransport
    from restwire.http.backends.otel import TracedRequestMiddleware
    from restwire.http.client import NetworkClient
    from restwire.http.codec import PydanticJSONCodec
    from restwire.http.decorators import (
        Body,
        ContentType,
        Delete,
        Get,
        Header,
        HttpRpcClientBuilder,
        Patch,
        PathParam,
        Post,
        Put,
        Query,
        RestClient,
        Upload,
    )
    from restwire.http.endpoint import (
        EndpointDescriptor,
        HttpMethod,
        Tokens,
        UploadPayload,
    )
    from restwire.http.errors import (
        DecodingError,
        EncodingError,
        HTTPError,
        HTTPErrorData,
        InvalidURL,
        NetworkError,
        RefreshFailed,
        UnknownError,
    )

__all__ = [
    "ClientConfig",
    "TokenStore",
    "HTTPXTransport",
    "TracedRequestMiddleware",
    "NetworkClient",
    "PydanticJSONCodec",
    "Body",
    "ContentType",
    "Delete",
    "Get",
    "Header",
    "HttpRpcClientBuilder",
    "Patch",
    "PathParam",
    "Post",
    "Put",
    "Query",
    "RestClient",
    "Upload",
    "EndpointDescriptor",
    "HttpMethod",
    "Tokens",
    "UploadPayload",
    "DecodingError",
    "EncodingError",
    "HTTPError",
    "HTTPErrorData",
    "InvalidURL",
    "NetworkError",
    "RefreshFailed",
    "UnknownError",
]

__SPEC_PARENT__: str = __spec__.parent  # type: ignore
# A mapping of {<member name>: (package, <module name>, <real name>)}
_dynamic_imports: "dict[str, tuple[str, str, str | None]]" = {
    "ClientConfig": (__SPEC_PARENT__, "config", None),
    "TokenStore": (__SPEC_PARENT__, "http.auth", None),
    "HTTPXTransport": (__SPEC_PARENT__, "http.backends.httpx", None),
    "TracedRequestMiddleware": (__SPEC_PARENT__, "http.backends.otel", None),
    "NetworkClient": (__SPEC_PARENT__, "http.client", None),
    "PydanticJSONCodec": (__SPEC_PARENT__, "http.codec", None),
    "Body": (__SPEC_PARENT__, "http.decorators", None),
    "ContentType": (__SPEC_PARENT__, "http.decorators", None),
    "Delete": (__SPEC_PARENT__, "http.decorators", None),
    "Get": (__SPEC_PARENT__, "http.decorators", None),
    "Header": (__SPEC_PARENT__, "http.decorators", None),
    "HttpRpcClientBuilder": (__SPEC_PARENT__, "http.decorators", None),
    "Patch": (__SPEC_PARENT__, "http.decorators", None),
    "PathParam": (__SPEC_PARENT__, "http.decorators", None),
    "Post": (__SPEC_PARENT__, "http.decorators", None),
    "Put": (__SPEC_PARENT__, "http.decorators", None),
    "Query": (__SPEC_PARENT__, "http.decorators", None),
    "RestClient": (__SPEC_PARENT__, "http.decorators", None),
    "Upload": (__SPEC_PARENT__, "http.decorators", None),
    "EndpointDescriptor": (__SPEC_PARENT__, "http.endpoint", None),
    "HttpMethod": (__SPEC_PARENT__, "http.endpoint", None),
    "Tokens": (__SPEC_PARENT__, "http.endpoint", None),
    "UploadPayload": (__SPEC_PARENT__, "http.endpoint", None),
    "DecodingError": (__SPEC_PARENT__, "http.errors", None),
    "EncodingError": (__SPEC_PARENT__, "http.errors", None),
    "HTTPError": (__SPEC_PARENT__, "http.errors", None),
    "HTTPErrorData": (__SPEC_PARENT__, "http.errors", None),
    "InvalidURL": (__SPEC_PARENT__, "http.errors", None),
    "NetworkError": (__SPEC_PARENT__, "http.errors", None),
    "RefreshFailed": (__SPEC_PARENT__, "http.errors", None),
    "UnknownError": (__SPEC_PARENT__, "http.errors", None),
}


def __getattr__(attr_name: str) -> object:

    dynamic_attr = _dynamic_imports.get(attr_name)
    if dynamic_attr is None:
        raise AttributeError(f"module {__name__!r} has no attribute {attr_name!r}")

    package, module_name, realname = dynamic_attr

    module = import_module(f"{package}.{module_name}", package=package)
    result = getattr(module, attr_name if realname is None else realname)
    globals()[attr_name] = result
    return result


def __dir__() -> "list[str]":
    return list(__all__)
