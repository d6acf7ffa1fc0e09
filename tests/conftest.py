"""
Pytest configuration for VacAItion backend tests.

Sets up test environment and global fixtures.
"""
import json
import os
from typing import Any, Dict, List, Optional

import pytest

# Disable config validation during tests
# This allows tests to run without requiring real environment variables
os.environ["VALIDATE_CONFIG"] = "false"

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("GOOGLE_API_KEY", "test-google-api-key")

from vacaition.services.completion_client import CompletionStream  # noqa: E402


async def _fragments(text: str, chunk_size: Optional[int]):
    if chunk_size is None:
        yield text
        return
    for start in range(0, len(text), chunk_size):
        yield text[start:start + chunk_size]


class FakeCompletionClient:
    """
    Scripted CompletionClient.

    Each call (single shot or stream) consumes the next reply. A reply that
    is an exception instance is raised instead of returned. Every prompt is
    recorded in `prompts`.
    """

    def __init__(self, replies: List[Any], chunk_size: Optional[int] = None):
        self.replies = list(replies)
        self.chunk_size = chunk_size
        self.prompts: List[str] = []

    def _next_reply(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def complete(self, prompt: str) -> str:
        return self._next_reply(prompt)

    def stream(self, prompt: str) -> CompletionStream:
        async def open_source():
            return _fragments(self._next_reply(prompt), self.chunk_size)

        return CompletionStream(open_source)


@pytest.fixture
def fake_client_factory():
    """Build a FakeCompletionClient from a list of replies."""
    return FakeCompletionClient


@pytest.fixture
def activity_payload() -> List[Dict[str, Any]]:
    """Three activity recommendations as the model would return them."""
    return [
        {
            "name": "Old Rag Mountain",
            "description": "Strenuous rock scramble with panoramic views.",
            "website": "https://www.nps.gov/shen/planyourvisit/old-rag.htm",
            "location": "Shenandoah National Park, VA (about 90 miles)"
        },
        {
            "name": "Billy Goat Trail",
            "description": "Rocky trail along the Potomac gorge.",
            "location": "Great Falls, MD (about 15 miles)"
        },
        {
            "name": "Sugarloaf Mountain",
            "description": "Short climb with farmland views, great at sunset.",
            "website": "https://sugarloafmd.com"
        }
    ]


@pytest.fixture
def activity_reply(activity_payload) -> str:
    return json.dumps(activity_payload)


def make_destination(name: str) -> Dict[str, Any]:
    return {
        "destination": name,
        "description": f"{name} is a relaxed coastal escape.",
        "activities": [
            {
                "name": f"{name} Harbor Walk",
                "location": f"Waterfront, {name}",
                "description": "Easy stroll past historic piers."
            },
            {
                "name": f"{name} Seafood Market",
                "location": f"Market St, {name}",
                "description": "Fresh local catch."
            }
        ]
    }


@pytest.fixture
def destination_factory():
    """Build a destination payload dict for a given destination name."""
    return make_destination
