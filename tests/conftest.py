"""
Pytest configuration and fixtures for payroll-recon tests

External systems are replaced by fakes: HTTP sessions return canned
requests.Response objects and the graph database is a scripted connection.
"""
import json
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from src.pipeline.context import ReconContext
from src.pipeline.join_engine import FailurePolicy


# =======================
# ENVIRONMENT FIXTURES
# =======================

RECON_ENV = {
    "MODERN_TREASURY_ORGANIZATION_ID": "org_test",
    "MODERN_TREASURY_API_KEY": "mt_key_test",
    "MODERN_TREASURY_API_URL": "https://mt.test",
    "INCREASE_API_KEY": "inc_key_test",
    "INCREASE_API_URL": "https://increase.test",
    "SALSA_AUTH_TOKEN": "salsa_token_test",
    "SALSA_API_URL": "https://salsa.test/api/graphql",
    "NEO4J_URI": "bolt://neo4j.test:7687",
    "NEO4J_USERNAME": "neo4j",
    "NEO4J_PASSWORD": "neo4j_test",
}


@pytest.fixture
def recon_env(monkeypatch) -> dict[str, str]:
    """Set every credential and URL the adapters read."""
    for name, value in RECON_ENV.items():
        monkeypatch.setenv(name, value)
    return dict(RECON_ENV)


@pytest.fixture
def empty_env(monkeypatch) -> None:
    """Remove every credential the adapters read."""
    for name in RECON_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("NEO4J_DATABASE", raising=False)


# =======================
# HTTP FIXTURES
# =======================

def build_response(
    status: int = 200,
    body: Any = None,
    headers: dict[str, str] | None = None,
    raw: bytes | None = None,
) -> requests.Response:
    """Build a requests.Response with a JSON (or raw) body."""
    response = requests.Response()
    response.status_code = status
    response._content = raw if raw is not None else json.dumps(body).encode("utf-8")
    response.headers = CaseInsensitiveDict(headers or {})
    response.encoding = "utf-8"
    return response


@pytest.fixture
def make_response() -> Callable[..., requests.Response]:
    return build_response


@pytest.fixture
def fake_session() -> MagicMock:
    """A requests.Session double; set .request.return_value or .side_effect."""
    return MagicMock(spec=requests.Session)


# =======================
# GRAPH DATABASE FIXTURES
# =======================

class ScriptedGraphConnection:
    """
    Stands in for GraphDatabaseConnection.

    Rows are chosen by the first registered marker found in the Cypher
    text; every call is recorded.
    """

    def __init__(self):
        self.responses: list[tuple[str, Any]] = []
        self.calls: list[tuple[str, dict]] = []
        self.closed = 0

    def on(self, marker: str, rows_or_error: Any) -> "ScriptedGraphConnection":
        self.responses.append((marker, rows_or_error))
        return self

    def execute_query(self, cypher: str, params: dict | None = None) -> list[dict]:
        self.calls.append((cypher, params or {}))
        for marker, result in self.responses:
            if marker in cypher:
                if isinstance(result, Exception):
                    raise result
                if callable(result):
                    return result(params or {})
                return result
        return []

    def close(self) -> None:
        self.closed += 1


@pytest.fixture
def graph_connection() -> ScriptedGraphConnection:
    return ScriptedGraphConnection()


# =======================
# CONTEXT FIXTURES
# =======================

@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "output"


@pytest.fixture
def make_context(output_dir) -> Callable[..., ReconContext]:
    """Build a ReconContext writing to a temporary output directory."""

    def _make(policy: FailurePolicy = FailurePolicy.ISOLATE, workers: int = 1, **adapters) -> ReconContext:
        context = ReconContext(output_dir=output_dir, policy=policy, workers=workers)
        for name, adapter in adapters.items():
            setattr(context, f"_{name}", adapter)
        return context

    return _make
