"""Shared fixtures."""
import pytest

from tierconf.logger import active_logger


@pytest.fixture(autouse=True)
def _release_logger():
    """Shut down any Logger a test left live so the next test can init one."""
    yield
    live = active_logger()
    if live is not None and not live.closed:
        live.shutdown()


@pytest.fixture(autouse=True)
def _no_debug_config(monkeypatch):
    monkeypatch.delenv("DEBUG_CONFIG", raising=False)
