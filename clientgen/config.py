"""Generator options.

Defaults can be overridden from the environment, and the command line
overrides both:

    CLIENTGEN_DEFAULT_CONTENT_TYPE  media type for operations that declare none
    CLIENTGEN_UNGROUPED_TAG         tag for operations without one
    CLIENTGEN_INLINE_RUNTIME        "1"/"true" to paste the runtime into the output
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class GeneratorOptions:
    default_content_type: str = "application/json"
    ungrouped_tag: str = "default"
    inline_runtime: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> GeneratorOptions:
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            default_content_type=env.get("CLIENTGEN_DEFAULT_CONTENT_TYPE", defaults.default_content_type),
            ungrouped_tag=env.get("CLIENTGEN_UNGROUPED_TAG", defaults.ungrouped_tag),
            inline_runtime=env.get("CLIENTGEN_INLINE_RUNTIME", "").strip().lower() in _TRUTHY,
        )
