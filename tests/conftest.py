import os

# Settings validate the environment at import time
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-1234")
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
for vendor_key in ("GEMINI_API_KEY", "CEREBRAS_API_KEY", "CARTESIA_API_KEY", "LIVEKIT_API_KEY", "LIVEKIT_API_SECRET"):
    os.environ[vendor_key] = ""

import pytest

from doubles import FakeCollection
from mockly.models.llm import PreliminaryReply


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def ready_reply():
    return PreliminaryReply(text="Great, let's begin the interview.", ready_to_begin=True)
