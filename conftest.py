# conftest.py

###### IMPORT TOOLS ######
# global imports
import os
import random
import tempfile
from datetime import datetime, timezone
import pytest


###### TEST ENVIRONMENT ######
# must be set before mock_tools.config is imported by any test module
os.environ.setdefault("APP_ENV", "test")
_log_dir = tempfile.mkdtemp(prefix="mock-tools-logs-")
os.environ.setdefault("LOG_DIR", _log_dir)
os.environ.setdefault("LOG_FILE", os.path.join(_log_dir, "app.log"))


###### FAKE EVENT SINK ######
class FakeSink:
    """Records captured events and answers flag evaluations with a fixed variant."""
    def __init__(self, variant="test"):
        self.variant = variant
        self.events = []
        self.flag_calls = []
        self.shutdown_called = False

    def capture(self, event):
        self.events.append(event)

    async def get_flag_variant(self, flag_key, distinct_id):
        self.flag_calls.append((flag_key, distinct_id))
        return self.variant

    async def shutdown(self):
        self.shutdown_called = True


###### FIXTURES ######
@pytest.fixture
def fake_sink():
    """Function-scoped fake of the PostHog event sink."""
    return FakeSink()


@pytest.fixture
def fixed_now():
    """Invocation time used by generation tests."""
    return datetime(2024, 2, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def rng():
    """Seeded random generator so runs are reproducible."""
    return random.Random(20240201)
