"""
Pytest configuration and fixtures for jsonrpc-do tests.

This module provides fixtures for:
- A scripted in-memory transport (no network)
- Sessions wired to that transport
- Loading the YAML conformance scenarios in tests/conformance/
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml


CONFORMANCE_DIR = Path(__file__).parent / "conformance"


class FakeTransport:
    """
    Transport double that records payloads and replays scripted responses.

    Each entry of ``responses`` is returned by one send(), in order. A dict
    or list entry is JSON-encoded first; an exception entry is raised.
    """

    def __init__(self, responses: list[Any] | None = None) -> None:
        self.responses = list(responses or [])
        self.sent: list[str] = []
        self.connect_timeouts: list[float | None] = []
        self.connect_error: BaseException | None = None
        self.closed = False
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self, timeout: float | None = None) -> None:
        self.connect_timeouts.append(timeout)
        if self.connect_error is not None:
            raise self.connect_error
        self._connected = True

    async def send(self, payload: str) -> str | bytes:
        self.sent.append(payload)
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, (dict, list)):
            return json.dumps(response)
        return response

    async def close(self) -> None:
        self.closed = True
        self._connected = False


class RecordingMethod:
    """Descriptor double with a configurable payload and transform."""

    def __init__(self, payload: Any, transform: Callable[[list[Any]], list[Any]] | None = None):
        self.payload = payload
        self.transform_calls: list[list[Any]] = []
        self._transform = transform

    def to_payload(self) -> Any:
        return self.payload

    def transform(self, values: list[Any]) -> list[Any]:
        self.transform_calls.append(list(values))
        if self._transform is None:
            return values
        return self._transform(values)


# ============================================================================
# Unit Test Fixtures
# ============================================================================


@pytest.fixture
def transport() -> FakeTransport:
    """Create an unconnected fake transport with no scripted responses."""
    return FakeTransport()


@pytest.fixture
def session(transport: FakeTransport):
    """Create an RpcSession on the fake transport."""
    from jsonrpc_do import RpcSession

    return RpcSession(transport, timeout=2.5)


@pytest.fixture
def make_method() -> Callable[..., RecordingMethod]:
    """Factory for descriptor doubles."""
    return RecordingMethod


@pytest.fixture(autouse=True)
def _reset_config():
    """Keep configure() calls from leaking between tests."""
    from jsonrpc_do.config import reset_config

    reset_config()
    yield
    reset_config()


# ============================================================================
# Conformance Scenarios
# ============================================================================


def load_scenarios(spec_dir: Path) -> list[dict[str, Any]]:
    """Load all conformance scenarios from YAML files."""
    scenarios = []
    if not spec_dir.exists():
        return scenarios

    for spec_file in sorted(spec_dir.glob("*.yaml")):
        with open(spec_file) as f:
            spec = yaml.safe_load(f)
            if spec and "tests" in spec:
                for test in spec["tests"]:
                    test["_category"] = spec.get("name", spec_file.stem)
                    scenarios.append(test)
    return scenarios


def pytest_generate_tests(metafunc):
    """Generate test cases from conformance scenarios."""
    if "scenario" in metafunc.fixturenames:
        scenarios = load_scenarios(CONFORMANCE_DIR)
        metafunc.parametrize(
            "scenario",
            scenarios,
            ids=[f"{s['_category']}::{s['name']}" for s in scenarios],
        )
