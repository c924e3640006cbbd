"""Group operations into API classes and decide what each one fans out to.

For every operation this module answers:
- which API class it belongs to (first tag, ``pets`` -> ``PetsApi``)
- its method base name (operationId in lower camel case)
- which media types take part (request body + 2xx responses, minus ``*/*``)
- in which order its parameters appear (required first, otherwise stable)
"""

from __future__ import annotations

from .naming import TokenRegistry
from .operations import OperationDescriptor, ParameterDescriptor

WILDCARD_MEDIA_TYPE = "*/*"


def api_class_name(tag: str, registry: TokenRegistry) -> str:
    """Resolve the API class identifier for *tag* (``pets`` -> ``PetsApi``)."""
    return registry.resolve(f"{tag} api")


def group_operations_by_tag(
    operations: list[OperationDescriptor],
    registry: TokenRegistry,
) -> dict[str, list[OperationDescriptor]]:
    """Group operations by the API class of their first tag, keeping order."""
    groups: dict[str, list[OperationDescriptor]] = {}
    for operation in operations:
        groups.setdefault(api_class_name(operation.tag, registry), []).append(operation)
    return groups


def method_raw_name(operation: OperationDescriptor, methods: TokenRegistry) -> str:
    """Raw name an operation registers its methods under.

    A repeated operationId within one API class is qualified with the method
    and path so it cannot reuse the first operation's identifier.
    """
    if operation.operation_id in methods:
        return f"{operation.operation_id} {operation.http_method} {operation.path}"
    return operation.operation_id


def method_base_name(operation: OperationDescriptor, methods: TokenRegistry) -> str:
    """Resolve the base method name through the API class's method registry."""
    return methods.resolve(method_raw_name(operation, methods))


def declared_media_types(operation: OperationDescriptor) -> list[str]:
    """Ordered union of request and success-response media types, minus ``*/*``."""
    media_types: list[str] = []

    def add(media_type: str) -> None:
        if media_type != WILDCARD_MEDIA_TYPE and media_type not in media_types:
            media_types.append(media_type)

    if operation.request_body is not None:
        for media_type in operation.request_body.content:
            add(media_type)

    for response in operation.responses.values():
        if response.is_success:
            for media_type in response.content:
                add(media_type)

    return media_types


def participating_media_types(
    operation: OperationDescriptor,
    default_content_type: str = "application/json",
) -> list[str]:
    """Media types the operation fans out to; never empty.

    An operation that declares no media type falls back to
    *default_content_type* so it still yields one method.
    """
    return declared_media_types(operation) or [default_content_type]


def order_parameters(parameters: list[ParameterDescriptor]) -> list[ParameterDescriptor]:
    """Required parameters first; relative order kept within each group."""
    return sorted(parameters, key=lambda p: not p.required)
