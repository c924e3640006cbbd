"""Turn one operation into one client method per participating media type.

A :class:`MethodVariant` carries everything the template needs to write a
method: the signature, the steps that fill in the :class:`ApiRequest`, the
body encoding, and the status branches of the response handler.

Signature order:
    self, <required body>, <required params...>, <optional params...>, <optional body>

Response dispatch:
    declared exact codes, then declared ``NXX`` ranges, then the default
    branch (raw body below 400, ``RequestError`` otherwise).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .classifier import (
    declared_media_types,
    method_raw_name,
    order_parameters,
    participating_media_types,
)
from .config import GeneratorOptions
from .declarations import TypeRenderer
from .diagnostics import Diagnostics
from .naming import TokenRegistry, argument_registry, media_type_suffix
from .operations import OperationDescriptor, ResponseDescriptor
from .resolver import BinaryType, OpenType, collapse

BODY_ARGUMENT = "body"

_STATUS_RANGE = re.compile(r"^([1-5])XX$")

_SETTERS: dict[str, str] = {
    "path": "set_path_param",
    "query": "add_search_param",
    "header": "set_header",
}


def is_json_media_type(media_type: str) -> bool:
    """``application/json``, ``text/json`` and any ``+json`` structured suffix."""
    base = media_type.split(";", 1)[0].strip().lower()
    return base in ("application/json", "text/json") or base.endswith("+json")


def is_form_media_type(media_type: str) -> bool:
    base = media_type.split(";", 1)[0].strip().lower()
    return base.startswith("multipart/") or base == "application/x-www-form-urlencoded"


@dataclass
class Argument:
    name: str
    annotation: str
    required: bool

    @property
    def declaration(self) -> str:
        if self.required:
            return f"{self.name}: {self.annotation}"
        return f"{self.name}: {self.annotation} | None = None"


@dataclass
class RequestStep:
    location: str
    key: str
    argument: str
    required: bool

    @property
    def setter(self) -> str:
        return _SETTERS[self.location]


@dataclass
class BodyPlan:
    argument: str
    media_type: str
    encoding: str
    required: bool

    @property
    def expression(self) -> str:
        if self.encoding == "json":
            return f"json.dumps({self.argument})"
        return self.argument


@dataclass
class StatusBranch:
    status: str
    condition: str
    outcome: str
    annotation: str = ""


@dataclass
class MethodVariant:
    name: str
    operation_id: str
    media_type: str
    http_method: str
    path: str
    arguments: list[Argument] = field(default_factory=list)
    steps: list[RequestStep] = field(default_factory=list)
    body: BodyPlan | None = None
    accept: str | None = None
    branches: list[StatusBranch] = field(default_factory=list)
    return_annotation: str = "bytes"
    doc: list[str] = field(default_factory=list)

    @property
    def signature(self) -> str:
        return ", ".join(["self", *(a.declaration for a in self.arguments)])


def _status_condition(status: str) -> tuple[str, int] | None:
    """Python condition for a declared status key and the lowest code it covers."""
    if status.isdigit():
        code = int(status)
        return f"response.status_code == {code}", code
    match = _STATUS_RANGE.match(status)
    if match:
        low = int(match.group(1)) * 100
        return f"{low} <= response.status_code < {low + 100}", low
    return None


class OperationEmitter:
    """Build :class:`MethodVariant` values for operations of one run."""

    def __init__(
        self,
        renderer: TypeRenderer,
        options: GeneratorOptions | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.renderer = renderer
        self.resolver = renderer.resolver
        self.options = options or GeneratorOptions()
        # operationIds seen in any API class; inline type names are global
        self._operation_ids: set[str] = set()
        self.diagnostics = diagnostics if diagnostics is not None else renderer.diagnostics

    def emit(self, operation: OperationDescriptor, methods: TokenRegistry) -> list[MethodVariant]:
        """Emit every media-type variant of *operation*, naming them in *methods*."""
        default = self.options.default_content_type
        if not declared_media_types(operation):
            self.diagnostics.info(
                operation.location,
                f"no request or success media type declared; emitting a {default} variant",
            )
        media_types = participating_media_types(operation, default)

        raw_name = method_raw_name(operation, methods)
        if raw_name != operation.operation_id:
            self.diagnostics.warning(
                operation.location, f"duplicate operationId {operation.operation_id!r}"
            )

        type_prefix = operation.operation_id
        if type_prefix in self._operation_ids:
            type_prefix = f"{operation.operation_id} {operation.http_method} {operation.path}"
        self._operation_ids.add(operation.operation_id)

        variants = []
        for media_type in media_types:
            if len(media_types) > 1 and media_type != default:
                name = methods.resolve(f"{raw_name} {media_type_suffix(media_type)}")
            else:
                name = methods.resolve(raw_name)
            variants.append(self.emit_variant(operation, media_type, name, type_prefix))
        return variants

    def emit_variant(
        self,
        operation: OperationDescriptor,
        media_type: str,
        name: str,
        type_prefix: str | None = None,
    ) -> MethodVariant:
        """Build one method; inline types are named after *type_prefix* (the operationId by default)."""
        variant = MethodVariant(
            name=name,
            operation_id=operation.operation_id,
            media_type=media_type,
            http_method=operation.http_method.upper(),
            path=operation.path,
            doc=self._doc(operation),
        )
        type_prefix = type_prefix or operation.operation_id
        raw_prefix = type_prefix
        if media_type != self.options.default_content_type:
            raw_prefix = f"{raw_prefix} {media_type_suffix(media_type)}"

        args = argument_registry()
        body_argument = self._body_argument(operation, media_type, raw_prefix, args)

        params: list[Argument] = []
        for param in order_parameters(operation.parameters):
            raw = param.name if param.name not in args else f"{param.location} {param.name}"
            arg_name = args.resolve(raw)
            annotation = self.renderer.render(
                self.resolver.resolve(param.schema), f"{type_prefix} {param.name}"
            )
            params.append(Argument(arg_name, annotation, param.required))
            variant.steps.append(RequestStep(param.location, param.name, arg_name, param.required))

        if body_argument is not None and body_argument.required:
            variant.arguments.append(body_argument)
        variant.arguments.extend(params)
        if body_argument is not None and not body_argument.required:
            variant.arguments.append(body_argument)

        if body_argument is not None:
            variant.body = BodyPlan(
                argument=body_argument.name,
                media_type=media_type,
                encoding=self._body_encoding(media_type),
                required=body_argument.required,
            )

        if any(r.is_success and media_type in r.content for r in operation.responses.values()):
            variant.accept = media_type

        variant.branches = self._branches(operation, media_type, raw_prefix)
        variant.return_annotation = self._return_annotation(variant.branches)
        return variant

    def _body_argument(
        self,
        operation: OperationDescriptor,
        media_type: str,
        raw_prefix: str,
        args: TokenRegistry,
    ) -> Argument | None:
        body = operation.request_body
        if body is None or media_type not in body.content:
            return None
        name = args.resolve(BODY_ARGUMENT)
        payload = body.content[media_type]
        annotation = "Any"
        if payload.schema is not None:
            annotation = self.renderer.render(
                self.resolver.resolve(payload.schema), f"{raw_prefix} request"
            )
        return Argument(name, annotation, body.required)

    @staticmethod
    def _body_encoding(media_type: str) -> str:
        if is_json_media_type(media_type):
            return "json"
        if is_form_media_type(media_type):
            return "form"
        return "raw"

    def _branches(
        self,
        operation: OperationDescriptor,
        media_type: str,
        raw_prefix: str,
    ) -> list[StatusBranch]:
        exact: list[StatusBranch] = []
        ranges: list[StatusBranch] = []
        first_success = True

        for status, response in operation.responses.items():
            if response.is_default:
                continue
            parsed = _status_condition(status)
            if parsed is None:
                self.diagnostics.warning(operation.location, f"unrecognized status {status!r} ignored")
                continue
            condition, code = parsed

            if code >= 400:
                branch = StatusBranch(status, condition, "error")
            else:
                raw_name = f"{raw_prefix} response"
                if not first_success:
                    raw_name = f"{raw_name} {status}"
                first_success = False
                outcome, annotation = self._success_outcome(response, media_type, raw_name)
                branch = StatusBranch(status, condition, outcome, annotation)

            (exact if status.isdigit() else ranges).append(branch)

        return exact + ranges

    def _success_outcome(
        self,
        response: ResponseDescriptor,
        media_type: str,
        raw_name: str,
    ) -> tuple[str, str]:
        payload = response.payload(media_type)
        if payload is None or payload.schema is None:
            return "text", "str"
        expr = collapse(self.resolver.resolve(payload.schema))
        if isinstance(expr, BinaryType):
            return "binary", "bytes"
        if is_json_media_type(media_type):
            if isinstance(expr, OpenType):
                return "json", "Any"
            return "json", self.renderer.render(expr, raw_name)
        return "text", "str"

    @staticmethod
    def _return_annotation(branches: list[StatusBranch]) -> str:
        annotations: list[str] = []
        for branch in branches:
            if branch.outcome == "error" or branch.annotation in annotations:
                continue
            annotations.append(branch.annotation)
        if not annotations:
            return "bytes"
        if "Any" in annotations:
            return "Any"
        return " | ".join(annotations)

    @staticmethod
    def _doc(operation: OperationDescriptor) -> list[str]:
        lines = []
        if operation.summary:
            lines.append(operation.summary)
        if operation.description and operation.description != operation.summary:
            lines.append(operation.description)
        if not lines:
            lines.append(f"{operation.http_method.upper()} {operation.path}")
        if operation.deprecated:
            lines.append("Deprecated.")
        return lines
