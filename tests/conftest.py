"""
Shared pytest fixtures for recordproxy tests.

This module provides:
- Sample flat and tree models
- A proxy factory writing databases under ``tmp_path``

Usage:
    Fixtures are auto-discovered by pytest. Proxies are plain objects;
    open and close them inside the test:

    @pytest.mark.asyncio
    async def test_something(make_proxy):
        async with make_proxy() as proxy:
            ...
"""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Ensure recordproxy package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from recordproxy.data.model import Field, Model  # noqa: E402
from recordproxy.proxy.local import LocalStoreProxy  # noqa: E402


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests that touch real database files as integration tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if "tmp_path" in getattr(item, "fixturenames", ()) or "make_proxy" in getattr(
            item, "fixturenames", ()
        ):
            item.add_marker(pytest.mark.integration)
        elif not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def search_model() -> Model:
    """Flat model: id, query, hits, plus a field that is never persisted."""
    return Model(
        "Search",
        [Field("id"), Field("query"), Field("hits", default=0), Field("selected", persist=False)],
    )


@pytest.fixture
def folder_model() -> Model:
    """Tree model: id, name, plus node fields."""
    return Model("Folder", [Field("id"), Field("name")], tree=True)


# =============================================================================
# Proxy Factory
# =============================================================================


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "stores"


@pytest.fixture
def make_proxy(data_dir: Path, search_model: Model) -> Callable[..., LocalStoreProxy]:
    """
    Build a proxy writing under ``tmp_path``.

    Defaults to the flat search model, database ``twitter`` and object
    store ``searches``; any keyword overrides a default.
    """

    def factory(model: Model | None = None, **options: Any) -> LocalStoreProxy:
        options.setdefault("db_name", "twitter")
        options.setdefault("object_store_name", "searches")
        options.setdefault("data_dir", data_dir)
        return LocalStoreProxy(model or search_model, **options)

    return factory
