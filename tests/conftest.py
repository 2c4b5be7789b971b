import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from consolebus.bus import EventBus, reset_bus  # noqa: E402


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture(autouse=True)
def _clean_default_bus(monkeypatch: pytest.MonkeyPatch):
    for name in ("CONSOLEBUS_LOG_LEVEL", "CONSOLEBUS_LOG_DIR", "CONSOLEBUS_THREAD_SAFE", "CONSOLEBUS_TRACE_EVENTS"):
        monkeypatch.delenv(name, raising=False)
    reset_bus()
    yield
    reset_bus()
