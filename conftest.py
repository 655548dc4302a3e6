"""Shared fixtures for LangStudy test suite."""
import os

# Keep module-level defaults away from the on-disk database and real model keys.
os.environ.setdefault("LANGSTUDY_STORE", "memory")
os.environ.setdefault("LANGSTUDY_LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from llm import candidate_text


def gemini_reply(text):
    """A generateContent reply carrying `text`, or one with no candidates for None."""
    if text is None:
        return {"candidates": []}
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


class FakeModel:
    """Scripted model: returns the queued replies in order and records prompts."""

    backend = "fake"
    name = "fake-model"

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []
        self.reachable = True

    async def generate(self, prompt, config):
        self.calls.append((prompt, config))
        if not self.replies:
            raise AssertionError("FakeModel ran out of replies")
        return candidate_text(gemini_reply(self.replies.pop(0)))

    async def ping(self):
        return self.reachable


@pytest.fixture()
def memory_store():
    from store import MemoryArticleStore
    return MemoryArticleStore()


@pytest.fixture()
def fake_model():
    return FakeModel()


@pytest.fixture()
def client(fake_model, memory_store):
    from backend import create_app
    app = create_app(model=fake_model, store=memory_store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def stored_article(memory_store):
    """Put an article with a known body into the store and return its id."""
    from datetime import datetime, timezone

    def _store(text="ABCDEFGHIJ", source_lang="en", target_lang="ja"):
        article_id = memory_store.new_id()
        memory_store.put(article_id, {
            "id": article_id,
            "uid": "u1",
            "topic": "travel",
            "sourceLang": source_lang,
            "targetLang": target_lang,
            "text": text,
            "translation": None,
            "createdAt": datetime.now(timezone.utc),
        })
        return article_id
    return _store
