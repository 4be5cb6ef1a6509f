"""
API test client: the real application wired to the in-memory service context.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from src.api.deps import get_context
from src.api.main import app
from src.app_shell.context import ServiceContext


@pytest.fixture
def client(ctx: ServiceContext) -> Iterator[TestClient]:
    """Client that does not follow redirects so 301/302 answers can be checked."""
    app.dependency_overrides[get_context] = lambda: ctx
    yield TestClient(app, follow_redirects=False)
    app.dependency_overrides.clear()
