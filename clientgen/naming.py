"""Turn raw names from an API description into Python identifiers.

Every identifier the generated module declares goes through a
:class:`TokenRegistry`, which hands out stable, collision-free names:

  - schema ``Pet``                        -> ``Pet``
  - schema ``pet-store``                  -> ``PetStore``
  - tag ``pets`` (as ``"pets api"``)      -> ``PetsApi``
  - operation ``getFile`` (method style)  -> ``getFile``
  - ``getFile`` + ``application/octet-stream`` -> ``getFileOctetStream``
  - a second raw name styling to ``Pet``  -> ``Pet_1``
"""

from __future__ import annotations

import builtins
import keyword
import re
from collections.abc import Callable, Iterable

_WORD_START = re.compile(r"(?:^\w|[A-Z]|\b\w)", re.ASCII)
_NON_TOKEN = re.compile(r"[^a-zA-Z0-9_]+")
_NON_IDENTIFIER = re.compile(r"\W", re.ASCII)

# Names the generated module imports or defines at top level.
_MODULE_NAMES: frozenset[str] = frozenset({
    "Any",
    "ApiRequest",
    "Awaitable",
    "CallNext",
    "Callable",
    "Client",
    "HttpxTransport",
    "Iterable",
    "JsonResponseHook",
    "Literal",
    "Middleware",
    "NotRequired",
    "Protocol",
    "RequestError",
    "ResponseHandler",
    "Transport",
    "TypeAlias",
    "TypedDict",
    "annotations",
    "dataclass",
    "field",
    "httpx",
    "inspect",
    "json",
    "logger",
    "logging",
    "quote",
    "replace",
    "urlencode",
})

RESERVED_IDENTIFIERS: frozenset[str] = frozenset(
    set(keyword.kwlist)
    | set(keyword.softkwlist)
    | {name for name in dir(builtins) if not name.startswith("_")}
    | _MODULE_NAMES
)


def strip_token(name: str) -> str:
    """Title-case word boundaries and drop everything that is not [A-Za-z0-9_]."""
    titled = _WORD_START.sub(lambda m: m.group(0).upper(), name)
    token = _NON_TOKEN.sub("", titled)
    if not token:
        return "Unnamed"
    if token[0].isdigit():
        return f"_{token}"
    return token


def lower_camel(name: str) -> str:
    """Lower-case the first letter of a stripped token."""
    token = strip_token(name)
    if token.startswith("_"):
        return token
    return token[0].lower() + token[1:]


def python_identifier(name: str) -> str:
    """Sanitize *name* into an identifier while keeping its casing."""
    ident = _NON_IDENTIFIER.sub("_", name).strip("_") or "arg"
    if ident[0].isdigit():
        ident = f"_{ident}"
    return ident


def media_type_suffix(media_type: str) -> str:
    """Normalize the subtype of a media type into a method-name suffix.

    ``application/octet-stream`` -> ``OctetStream``,
    ``application/vnd.api+json`` -> ``VndApiJson``.
    """
    base = media_type.split(";", 1)[0].strip()
    subtype = base.split("/", 1)[-1]
    return strip_token(subtype)


class TokenRegistry:
    """Memoized raw-name -> identifier table for one scope.

    A registry is created per generation run for module-level names, per API
    class for method names and per method for argument names. The *style*
    callable turns a raw name into a candidate; collisions are checked on the
    styled result so keywords and builtins never leak through.
    """

    def __init__(
        self,
        reserved: Iterable[str] = RESERVED_IDENTIFIERS,
        style: Callable[[str], str] = strip_token,
    ) -> None:
        self._style = style
        self._taken: set[str] = set(reserved)
        self._assigned: dict[str, str] = {}

    def resolve(self, raw_name: str) -> str:
        """Return the identifier for *raw_name*, assigning one on first use."""
        if raw_name in self._assigned:
            return self._assigned[raw_name]

        candidate = self._style(raw_name)
        identifier = candidate
        counter = 0
        while identifier in self._taken:
            counter += 1
            identifier = f"{candidate}_{counter}"

        self._taken.add(identifier)
        self._assigned[raw_name] = identifier
        return identifier

    def reserve(self, identifier: str) -> None:
        """Mark *identifier* as unavailable for later raw names."""
        self._taken.add(identifier)

    def __contains__(self, raw_name: object) -> bool:
        return raw_name in self._assigned

    def __len__(self) -> int:
        return len(self._assigned)


def method_registry() -> TokenRegistry:
    """Registry for method names within one API class."""
    return TokenRegistry(RESERVED_IDENTIFIERS | {"client", "__init__"}, style=lower_camel)


def argument_registry() -> TokenRegistry:
    """Registry for argument names within one method signature."""
    return TokenRegistry(
        set(keyword.kwlist)
        | set(keyword.softkwlist)
        | _MODULE_NAMES
        | {"self", "request", "response", "handle"},
        style=python_identifier,
    )
