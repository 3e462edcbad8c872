import pytest

from villabook.config import reset_settings
from villabook.events import reset_event_bus
from villabook.lifecycle import reset_all


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Point config at a temp dir and drop singletons between tests."""
    monkeypatch.setenv("VILLABOOK_CONFIG_DIR", str(tmp_path / "config"))
    for var in ("VILLABOOK_API_URL", "VILLABOOK_REQUEST_TIMEOUT", "VILLABOOK_DEFAULT_LANGUAGE"):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    reset_event_bus()
    yield
    reset_all()
    reset_settings()
    reset_event_bus()
