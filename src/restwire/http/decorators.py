# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import inspect
import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Literal,
    Optional,
    TypeVar,
    cast,
    get_type_hints,
)
from urllib.parse import quote

from restwire.http.client import NetworkClient
from restwire.http.endpoint import EndpointDescriptor, HttpMethod, UploadPayload
from restwire.reflect.decorators import StackableDecorator

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HttpMapping(StackableDecorator):

    def __init__(self, method: HttpMethod, path: str):
        self.method = method
        self.path = path

    @classmethod
    def decorator_key(cls) -> Any:
        return HttpMapping


class Post(HttpMapping):

    def __init__(self, path: str):
        super().__init__(HttpMethod.POST, path)


class Get(HttpMapping):

    def __init__(self, path: str):
        super().__init__(HttpMethod.GET, path)


class Patch(HttpMapping):

    def __init__(self, path: str):
        super().__init__(HttpMethod.PATCH, path)


class Put(HttpMapping):

    def __init__(self, path: str):
        super().__init__(HttpMethod.PUT, path)


class Delete(HttpMapping):

    def __init__(self, path: str):
        super().__init__(HttpMethod.DELETE, path)


class RequestAttribute(StackableDecorator):

    def __init__(
        self,
        attribute_type: Literal["query", "header", "body", "param", "upload"],
        name: str,
    ):
        self.attribute_type = attribute_type
        self.name = name

    @classmethod
    def decorator_key(cls) -> Any:
        return RequestAttribute


class Query(RequestAttribute):
    """Sends the argument as a query parameter, omitted when ``None``"""

    def __init__(self, name: str):
        super().__init__("query", name)


class Header(RequestAttribute):

    def __init__(self, name: str):
        super().__init__("header", name)


class Body(RequestAttribute):

    def __init__(self, name: str):
        super().__init__("body", name)


class PathParam(RequestAttribute):
    """Replaces the ``:name`` placeholder of the route path"""

    def __init__(self, name: str):
        super().__init__("param", name)


class Upload(RequestAttribute):
    """
    Sends the argument (an ``UploadPayload`` or raw ``bytes``) as the request
    body, framed as multipart/form-data unless ``multipart`` is false.
    """

    def __init__(self, name: str, multipart: bool = True):
        super().__init__("upload", name)
        self.multipart = multipart


class ContentType(StackableDecorator):
    """Decorator for specifying content type"""

    def __init__(self, content_type: str):
        self.content_type = content_type


class RestClient(StackableDecorator):

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url


def _return_type(method_call: Callable[..., Any]) -> Any:
    try:
        hints = get_type_hints(method_call)
    except (NameError, TypeError):
        hints = {}
    if "return" in hints:
        return hints["return"]
    annotation = inspect.signature(method_call).return_annotation
    return Any if annotation is inspect.Signature.empty else annotation


class HttpRpcClientBuilder:
    """
    Turns a ``@RestClient`` class into an object whose mapped methods build an
    ``EndpointDescriptor`` from their arguments and execute it through a
    ``NetworkClient``. Results are decoded into each method's return
    annotation.
    """

    def __init__(self, client: NetworkClient):
        self._client = client

    def build(self, cls: type[T]) -> T:
        rest_client = RestClient.get_last(cls)

        if rest_client is None:
            raise ValueError("Class is not a rest client")

        def create_method(
            mapping: HttpMapping,
            method_call: Callable[..., Any],
        ) -> Callable[..., Awaitable[Any]]:

            call_signature = inspect.signature(method_call)
            call_parameters = call_signature.parameters
            request_attributes = RequestAttribute.get(method_call)
            content_type = ContentType.get_last(method_call)
            return_type = _return_type(method_call)

            attribute_types = {attr.attribute_type for attr in request_attributes}
            if {"body", "upload"} <= attribute_types:
                raise ValueError(
                    f"Method {method_call.__name__} cannot declare both "
                    "@Body and @Upload"
                )

            async def rpc_method(*args: Any, **kwargs: Any) -> Any:
                logger.debug(
                    "Calling RPC method %s with args=%s kwargs=%s",
                    method_call.__name__,
                    args,
                    kwargs,
                )

                bound = call_signature.bind(None, *args, **kwargs)
                bound.apply_defaults()

                compiled_kwargs: Dict[str, Any] = {}
                for name, value in list(bound.arguments.items())[1:]:
                    if call_parameters[name].kind is inspect.Parameter.VAR_KEYWORD:
                        compiled_kwargs.update(value)
                    else:
                        compiled_kwargs[name] = value

                headers: Dict[str, str] = {}
                query_params: Dict[str, str] = {}
                body: Any = None
                upload: Optional[Upload] = None
                path = mapping.path

                for attr in request_attributes:
                    value = compiled_kwargs[attr.name]
                    if attr.attribute_type == "header":
                        headers[attr.name] = str(value)
                    elif attr.attribute_type == "query":
                        if value is not None:
                            query_params[attr.name] = str(value)
                    elif attr.attribute_type == "body":
                        body = value
                    elif attr.attribute_type == "param":
                        path = path.replace(f":{attr.name}", quote(str(value), safe=""))
                    elif attr.attribute_type == "upload":
                        upload = cast(Upload, attr)

                if content_type is not None:
                    headers["Content-Type"] = content_type.content_type

                descriptor = EndpointDescriptor(
                    base_url=rest_client.base_url,
                    path=path,
                    method=mapping.method,
                    headers=headers or None,
                    query_parameters=query_params or None,
                    body=body,
                )

                if upload is None:
                    return await self._client.request(descriptor, return_type)

                payload = compiled_kwargs[upload.name]
                if isinstance(payload, bytes):
                    payload = UploadPayload(data=payload)
                if upload.multipart:
                    return await self._client.upload_multipart(
                        descriptor, payload, return_type
                    )
                return await self._client.upload_binary(
                    descriptor, payload, return_type
                )

            rpc_method.__name__ = method_call.__name__
            rpc_method.__doc__ = method_call.__doc__
            return rpc_method

        class Dummy: ...

        dummy = Dummy()

        for attr_name, method_call in inspect.getmembers(
            cls, predicate=inspect.isfunction
        ):
            if (mapping := HttpMapping.get_last(method_call)) is not None:
                setattr(dummy, attr_name, create_method(mapping, method_call))

        return cast(T, dummy)


__all__ = [
    "Post",
    "Get",
    "Patch",
    "Put",
    "Delete",
    "Query",
    "Header",
    "Body",
    "PathParam",
    "Upload",
    "ContentType",
    "RestClient",
    "HttpMapping",
    "RequestAttribute",
    "HttpRpcClientBuilder",
]
