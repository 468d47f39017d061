import os
import sys

import pytest

# Add parent directory to path to allow importing aggregation and main
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep every test offline: no live source is registered unless a test opts in
for _var in ("THINGIVERSE_TOKEN", "CULTS3D_USERNAME", "CULTS3D_API_KEY", "MYMINIFACTORY_API_KEY",
             "AGGREGATOR_REQUEST_DEADLINE_SECONDS", "SENTRY_DSN"):
    os.environ.pop(_var, None)
os.environ["PRINTABLES_ENABLED"] = "false"
os.environ["MAKERWORLD_ENABLED"] = "false"
os.environ["USE_MOCK_SOURCES"] = "auto"


@pytest.fixture
def clean_source_env(monkeypatch):
    """Start from an environment with no source configured."""
    for var in ("THINGIVERSE_TOKEN", "CULTS3D_USERNAME", "CULTS3D_API_KEY", "MYMINIFACTORY_API_KEY"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("PRINTABLES_ENABLED", "false")
    monkeypatch.setenv("MAKERWORLD_ENABLED", "false")
    monkeypatch.setenv("USE_MOCK_SOURCES", "false")
    return monkeypatch
