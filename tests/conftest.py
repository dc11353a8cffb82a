"""Pytest configuration shared across test modules."""

import os

import pytest

os.environ.setdefault("OPENAI_API_KEY", "")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from earthai.utils import conversation_memory, tool_timings, viewport_reconciler  # noqa: E402


@pytest.fixture(autouse=True)
def clean_session_state():
    """Per-session registries are module globals; reset them around each test."""

    viewport_reconciler._reconcilers.clear()
    conversation_memory.conversation_history.clear()
    tool_timings.get_and_reset()
    yield
    viewport_reconciler._reconcilers.clear()
    conversation_memory.conversation_history.clear()
    tool_timings.get_and_reset()
