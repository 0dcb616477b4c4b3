import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1] / "api_server"
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from podscription.core.config import Settings  # noqa: E402
from podscription.core.pipeline import SessionManager  # noqa: E402
from podscription.runtime_state import InMemorySessionStore  # noqa: E402

from .fakes import FakeBackend  # noqa: E402


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        store_path="",
        environment="test",
    )


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def manager(store, backend, test_settings):
    return SessionManager(store=store, backend=backend, settings=test_settings)
