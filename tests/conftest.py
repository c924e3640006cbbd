"""Shared fixtures for clientgen tests.

The petstore description under fixtures/ covers the shapes the generator has
to handle: records, enums, allOf inheritance, non-identifier keys, media-type
fan-out, untagged and unnamed operations, and a reference cycle.
"""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Callable

import httpx
import pytest

from clientgen.codegen import render
from clientgen.config import GeneratorOptions
from clientgen.context_builder import build_context
from clientgen.loader import load_spec
from clientgen.runtime import Client, HttpxTransport

FIXTURES = Path(__file__).parent / "fixtures"
PETSTORE = FIXTURES / "petstore.json"
BASE_URL = "https://petstore.example.com/v1"


@pytest.fixture(scope="session")
def petstore_spec() -> dict[str, Any]:
    return load_spec(PETSTORE)


@pytest.fixture(scope="session")
def petstore_context(petstore_spec) -> dict[str, Any]:
    return build_context(petstore_spec)


@pytest.fixture
def import_generated(tmp_path) -> Callable[[str, str], ModuleType]:
    """Write generated source to tmp_path and import it as a fresh module."""
    loaded: list[str] = []

    def _import(source: str, name: str = "petstore_client") -> ModuleType:
        path = tmp_path / f"{name}.py"
        path.write_text(source, encoding="utf-8")
        spec = importlib.util.spec_from_file_location(name, path)
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        loaded.append(name)
        spec.loader.exec_module(module)
        return module

    yield _import
    for name in loaded:
        sys.modules.pop(name, None)


@pytest.fixture
def petstore_module(petstore_spec, import_generated) -> ModuleType:
    """The petstore client, generated and imported."""
    return import_generated(render(build_context(petstore_spec, GeneratorOptions())))


@pytest.fixture
def mock_client() -> Callable[..., Client]:
    """Build a Client whose transport answers through *handler*.

    Usage::

        client = mock_client(lambda request: httpx.Response(200, json={...}))
    """

    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> Client:
        transport = HttpxTransport(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        return Client(BASE_URL, transport=transport, **kwargs)

    return _make
