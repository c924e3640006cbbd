"""Exception hierarchy for the generator.

Generation itself degrades instead of failing: these exceptions cover input
that cannot be loaded at all, and schema chains that cannot be rendered.
The runtime error surfaced to API callers (``RequestError``) lives in
:mod:`clientgen.runtime` so the runtime stays importable on its own.

    ClientGenError
    +-- SpecLoadError
    +-- RecursiveSchemaError
"""

from __future__ import annotations


class ClientGenError(Exception):
    """Base exception for all generator errors."""


class SpecLoadError(ClientGenError):
    """Raised when an API description cannot be read or parsed."""


class RecursiveSchemaError(ClientGenError):
    """Raised when a chain of named schemas refers back to itself.

    Args:
        chain: The raw schema names in the order they were followed.
    """

    def __init__(self, chain: list[str]):
        self.chain = list(chain)
        super().__init__(f"unsupported recursive schema: {' -> '.join(self.chain)}")
