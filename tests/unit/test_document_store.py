"""Unit tests for the document stores."""

import asyncio
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from professor_ai.db import Base
from professor_ai.rag import Document, DocumentFilter
from professor_ai.rag.document_store import (
    DocumentStore,
    InMemoryDocumentStore,
    SQLDocumentStore,
    get_document_store,
)


@pytest.fixture
def sql_store(tmp_path):
    """SQL store on a throwaway SQLite database."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'documents.db'}",
        connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    session_factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    yield SQLDocumentStore(session_factory)
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request, sql_store):
    """Both store implementations, so they are held to the same contract."""
    if request.param == "memory":
        return InMemoryDocumentStore()
    return sql_store


def seed(store, documents):
    for doc in documents:
        asyncio.run(store.save(doc))


class TestDocumentStoreContract:
    """Behaviour shared by every DocumentStore."""

    def test_implements_protocol(self, store):
        assert isinstance(store, DocumentStore)

    def test_save_and_get(self, store):
        doc = Document(
            id="d1",
            title="Limits",
            content="A limit describes approach.",
            topic="Calculus",
            owner_id="alice",
            embedding=[0.1, 0.2],
            tags=["intro"],
            metadata={"verified": True},
        )
        seed(store, [doc])

        loaded = asyncio.run(store.get("d1"))

        assert loaded.title == "Limits"
        assert loaded.topic == "Calculus"
        assert loaded.embedding == [0.1, 0.2]
        assert loaded.tags == ["intro"]
        assert loaded.metadata == {"verified": True}
        assert loaded.usage_count == 0

    def test_get_missing(self, store):
        assert asyncio.run(store.get("nope")) is None

    def test_save_updates_existing(self, store):
        seed(store, [Document(id="d1", title="Old", content="c")])
        seed(store, [Document(id="d1", title="New", content="c", embedding=[1.0, 0.0])])

        loaded = asyncio.run(store.get("d1"))

        assert loaded.title == "New"
        assert loaded.embedding == [1.0, 0.0]

    def test_find_by_topic_and_visibility(self, store):
        seed(store, [
            Document(id="own", title="t", content="c", topic="Calculus", owner_id="alice"),
            Document(id="pub", title="t", content="c", topic="Calculus", owner_id="bob", is_public=True),
            Document(id="priv", title="t", content="c", topic="Calculus", owner_id="bob"),
            Document(id="other", title="t", content="c", topic="Algebra", owner_id="alice"),
        ])

        visible = asyncio.run(store.find(DocumentFilter(topic="Calculus", user_id="alice")))
        everything = asyncio.run(store.find(DocumentFilter()))
        owned = asyncio.run(store.find(DocumentFilter(owner_id="alice")))

        assert sorted(d.id for d in visible) == ["own", "pub"]
        assert len(everything) == 4
        assert sorted(d.id for d in owned) == ["other", "own"]

    def test_update_usage(self, store):
        seed(store, [Document(id="d1", title="t", content="c")])
        later = datetime(2026, 3, 2, 12, 0, 0)
        earlier = datetime(2026, 3, 1, 12, 0, 0)

        asyncio.run(store.update_usage("d1", later))
        asyncio.run(store.update_usage("d1", earlier))

        loaded = asyncio.run(store.get("d1"))
        assert loaded.usage_count == 2
        # last_used_at never moves backwards
        assert loaded.last_used_at.replace(tzinfo=None) == later

    def test_update_embedding_touches_only_embedding(self, store):
        used_at = datetime(2026, 3, 2, 12, 0, 0)
        seed(store, [Document(id="d1", title="Limits", content="c", topic="Calculus", tags=["intro"])])
        asyncio.run(store.update_usage("d1", used_at))
        stale = asyncio.run(store.get("d1"))
        asyncio.run(store.update_usage("d1", used_at))

        asyncio.run(store.update_embedding(stale.id, [0.6, 0.8]))

        loaded = asyncio.run(store.get("d1"))
        assert loaded.embedding == [0.6, 0.8]
        assert loaded.usage_count == 2
        assert loaded.last_used_at.replace(tzinfo=None) == used_at
        assert (loaded.title, loaded.topic, loaded.tags) == ("Limits", "Calculus", ["intro"])

    def test_update_embedding_missing(self, store):
        with pytest.raises(KeyError):
            asyncio.run(store.update_embedding("nope", [1.0, 0.0]))

    def test_update_usage_missing(self, store):
        with pytest.raises(KeyError):
            asyncio.run(store.update_usage("nope", datetime(2026, 3, 1)))

    def test_delete(self, store):
        seed(store, [Document(id="d1", title="t", content="c")])

        assert asyncio.run(store.delete("d1")) is True
        assert asyncio.run(store.delete("d1")) is False
        assert asyncio.run(store.get("d1")) is None


class TestInMemoryDocumentStore:
    """Tests specific to the in-memory store."""

    def test_returns_copies(self):
        store = InMemoryDocumentStore([Document(id="d1", title="t", content="c")])

        loaded = asyncio.run(store.get("d1"))
        loaded.embedding = [1.0, 0.0]

        assert asyncio.run(store.get("d1")).embedding is None
        assert len(store) == 1


class TestGetDocumentStore:
    """Tests for the backend factory."""

    def test_memory_backend(self):
        assert isinstance(get_document_store("memory"), InMemoryDocumentStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            get_document_store("redis")
