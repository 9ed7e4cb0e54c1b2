"""
Shared test fixtures and helpers for the Waymark test suite.
"""

import pytest

from waymark.metadata import AnnotationStore
from waymark.decorators import Annotator
from waymark.registry import Registry
from waymark.config import ResolverConfig


@pytest.fixture
def store() -> AnnotationStore:
    return AnnotationStore()


@pytest.fixture
def mark(store) -> Annotator:
    return Annotator(store)


@pytest.fixture
def registry() -> Registry:
    return Registry()


@pytest.fixture
def strict_registry() -> Registry:
    return Registry(config=ResolverConfig(strict=True))


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Keep WAYMARK_* variables and cwd config files out of every test."""
    import os
    for key in list(os.environ):
        if key.startswith("WAYMARK_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
