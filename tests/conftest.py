"""Shared fixtures: a scripted chat provider for agent tests."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from zcal.core.provider_client import BaseChatProvider, FinalMessage, ProviderClient


class ScriptedProvider(BaseChatProvider):
    """Provider returning a preset final message and recording each call."""

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete(self, model, system, messages, max_tokens, temperature=None):
        self.calls.append({
            "model": model,
            "system": system,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.error:
            raise self.error
        if isinstance(self.reply, FinalMessage):
            return self.reply
        return FinalMessage(content=self.reply)

    def get_name(self):
        return "scripted"


@pytest.fixture
def provider():
    """Scripted provider; set .reply or .error in the test."""
    return ScriptedProvider()


@pytest.fixture
def provider_client(provider):
    return ProviderClient(provider, model="gpt-4o", vision_max_tokens=500, text_max_tokens=1000)
