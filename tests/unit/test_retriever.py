"""Unit tests for the retrieval orchestrator."""

import asyncio
from datetime import datetime, timezone

import pytest

from professor_ai.rag import DocumentRetriever, InvalidArgument, RetrievalQuery
from professor_ai.rag.document_store import InMemoryDocumentStore

QUERY = "What is the derivative of x squared?"


def make_retriever(config, store, embeddings):
    return DocumentRetriever(config, embeddings, store)


class TestRetrieve:
    """Tests for DocumentRetriever.retrieve."""

    def test_threshold_and_limit(self, rag_config, ranked_corpus, stub_embeddings):
        """Scores 0.9/0.75/0.6 with threshold 0.7 and limit 2 return d1, d2."""
        embeddings = stub_embeddings({QUERY: [1.0, 0.0]})
        retriever = make_retriever(rag_config, ranked_corpus, embeddings)

        results = asyncio.run(retriever.retrieve(
            RetrievalQuery(QUERY, topic="Calculus", limit=2, threshold=0.7)
        ))

        assert [r.document.id for r in results] == ["d1", "d2"]
        assert results[0].similarity == pytest.approx(0.9)
        assert results[1].similarity == pytest.approx(0.75)

    def test_limit_truncates(self, rag_config, ranked_corpus, stub_embeddings):
        embeddings = stub_embeddings({QUERY: [1.0, 0.0]})
        retriever = make_retriever(rag_config, ranked_corpus, embeddings)

        results = asyncio.run(retriever.retrieve(
            RetrievalQuery(QUERY, limit=1, threshold=0.0)
        ))

        assert [r.document.id for r in results] == ["d1"]

    def test_empty_corpus(self, rag_config, stub_embeddings):
        embeddings = stub_embeddings({QUERY: [1.0, 0.0]})
        retriever = make_retriever(rag_config, InMemoryDocumentStore(), embeddings)

        report = asyncio.run(retriever.search(RetrievalQuery(QUERY)))

        assert report.results == []
        assert report.candidates_count == 0

    def test_unknown_topic_returns_nothing(self, rag_config, ranked_corpus, stub_embeddings):
        embeddings = stub_embeddings({QUERY: [1.0, 0.0]})
        retriever = make_retriever(rag_config, ranked_corpus, embeddings)

        results = asyncio.run(retriever.retrieve(
            RetrievalQuery(QUERY, topic="Linear Algebra", threshold=0.0)
        ))

        assert results == []

    def test_ties_broken_by_id(self, rag_config, make_document, stub_embeddings):
        store = InMemoryDocumentStore([
            make_document("b", embedding=[1.0, 0.0]),
            make_document("a", embedding=[1.0, 0.0]),
        ])
        embeddings = stub_embeddings({QUERY: [1.0, 0.0]})
        retriever = make_retriever(rag_config, store, embeddings)

        results = asyncio.run(retriever.retrieve(RetrievalQuery(QUERY, limit=5)))

        assert [r.document.id for r in results] == ["a", "b"]

    def test_visibility(self, rag_config, make_document, stub_embeddings):
        """Users see their own and public documents only."""
        store = InMemoryDocumentStore([
            make_document("mine", owner_id="alice", embedding=[1.0, 0.0]),
            make_document("public", owner_id="bob", is_public=True, embedding=[1.0, 0.0]),
            make_document("private", owner_id="bob", embedding=[1.0, 0.0]),
        ])
        embeddings = stub_embeddings({QUERY: [1.0, 0.0]})
        retriever = make_retriever(rag_config, store, embeddings)

        as_alice = asyncio.run(retriever.retrieve(
            RetrievalQuery(QUERY, user_id="alice", limit=5)
        ))
        anonymous = asyncio.run(retriever.retrieve(RetrievalQuery(QUERY, limit=5)))

        assert sorted(r.document.id for r in as_alice) == ["mine", "public"]
        assert sorted(r.document.id for r in anonymous) == ["mine", "private", "public"]

    def test_provider_outage_finds_nothing(self, outage_config, make_document, unavailable_embeddings):
        """With the embedding API down, fallback vectors never clear the default threshold."""
        store = InMemoryDocumentStore(
            [make_document(f"d{i}", content=f"Lecture note {i}") for i in range(10)]
            + [make_document("embedded", embedding=[1.0] * 384)]
        )
        retriever = make_retriever(outage_config, store, unavailable_embeddings)

        report = asyncio.run(retriever.search(retriever.build_query(QUERY)))

        assert report.degraded is True
        assert report.results == []
        assert report.candidates_count == 11
        assert report.backfilled_count == 0
        stored = asyncio.run(store.find(RetrievalQuery(QUERY).to_filter()))
        assert all(d.usage_count == 0 for d in stored)
        assert all(d.embedding is None for d in stored if d.id != "embedded")

    def test_mismatched_document_skipped(self, rag_config, make_document, stub_embeddings):
        store = InMemoryDocumentStore([
            make_document("ok", embedding=[1.0, 0.0]),
            make_document("legacy", embedding=[1.0, 0.0, 0.0]),
        ])
        embeddings = stub_embeddings({QUERY: [1.0, 0.0]})
        retriever = make_retriever(rag_config, store, embeddings)

        report = asyncio.run(retriever.search(RetrievalQuery(QUERY, limit=5)))

        assert [r.document.id for r in report.results] == ["ok"]
        assert report.skipped_ids == ["legacy"]

    @pytest.mark.parametrize("limit", [0, -1, 2.5, "3", True])
    def test_invalid_limit(self, rag_config, ranked_corpus, stub_embeddings, limit):
        embeddings = stub_embeddings({QUERY: [1.0, 0.0]})
        retriever = make_retriever(rag_config, ranked_corpus, embeddings)

        with pytest.raises(InvalidArgument):
            asyncio.run(retriever.retrieve(RetrievalQuery(QUERY, limit=limit)))

        assert embeddings.calls == []

    @pytest.mark.parametrize("threshold", [-0.1, 1.5, "high"])
    def test_invalid_threshold(self, rag_config, ranked_corpus, stub_embeddings, threshold):
        embeddings = stub_embeddings({QUERY: [1.0, 0.0]})
        retriever = make_retriever(rag_config, ranked_corpus, embeddings)

        with pytest.raises(InvalidArgument):
            asyncio.run(retriever.retrieve(RetrievalQuery(QUERY, threshold=threshold)))

    def test_invalid_argument_is_value_error(self):
        with pytest.raises(ValueError):
            RetrievalQuery(QUERY, limit=0).validate()


class TestBackfill:
    """Tests for lazy embedding of documents without vectors."""

    def test_missing_embedding_is_written_back(self, rag_config, make_document, stub_embeddings):
        store = InMemoryDocumentStore([
            make_document("new", content="chain rule"),
        ])
        embeddings = stub_embeddings({QUERY: [1.0, 0.0], "chain rule": [1.0, 0.0]})
        retriever = make_retriever(rag_config, store, embeddings)

        report = asyncio.run(retriever.search(RetrievalQuery(QUERY)))

        assert [r.document.id for r in report.results] == ["new"]
        assert report.backfilled_count == 1
        stored = asyncio.run(store.get("new"))
        assert stored.embedding == [1.0, 0.0]

    def test_existing_embedding_not_recomputed(self, rag_config, ranked_corpus, stub_embeddings):
        embeddings = stub_embeddings({QUERY: [1.0, 0.0]})
        retriever = make_retriever(rag_config, ranked_corpus, embeddings)

        asyncio.run(retriever.retrieve(RetrievalQuery(QUERY)))

        assert embeddings.calls == [QUERY]

    def test_fallback_vector_not_persisted(self, rag_config, make_document, stub_embeddings):
        store = InMemoryDocumentStore([make_document("new", content="chain rule")])
        embeddings = stub_embeddings(available=False)
        retriever = make_retriever(rag_config, store, embeddings)

        report = asyncio.run(retriever.search(RetrievalQuery(QUERY, threshold=0.0)))

        assert report.backfilled_count == 0
        stored = asyncio.run(store.get("new"))
        assert stored.embedding is None

    def test_write_back_keeps_concurrent_usage(self, rag_config, make_document, stub_embeddings):
        """Usage recorded while a document is being embedded is not overwritten."""
        store = InMemoryDocumentStore([make_document("d1", content="chain rule")])
        used_at = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

        class SlowEmbeddings(stub_embeddings):
            async def embed(self, text):
                if text == "chain rule":
                    await store.update_usage("d1", used_at)
                return await super().embed(text)

        embeddings = SlowEmbeddings({QUERY: [1.0, 0.0], "chain rule": [0.0, 1.0]})
        retriever = make_retriever(rag_config, store, embeddings)

        results = asyncio.run(retriever.retrieve(RetrievalQuery(QUERY, threshold=0.9)))

        assert results == []
        stored = asyncio.run(store.get("d1"))
        assert stored.embedding == [0.0, 1.0]
        assert stored.usage_count == 1
        assert stored.last_used_at == used_at

    def test_concurrent_embedding_calls_are_bounded(self, rag_config, make_document, stub_embeddings):
        rag_config.embedding_concurrency = 2
        store = InMemoryDocumentStore(
            [make_document(f"d{i}", content=f"note {i}") for i in range(6)]
        )
        in_flight = {"now": 0, "max": 0}

        class TrackingEmbeddings(stub_embeddings):
            async def embed(self, text):
                in_flight["now"] += 1
                in_flight["max"] = max(in_flight["max"], in_flight["now"])
                await asyncio.sleep(0.01)
                in_flight["now"] -= 1
                return await super().embed(text)

        retriever = make_retriever(rag_config, store, TrackingEmbeddings({QUERY: [1.0, 0.0]}))

        report = asyncio.run(retriever.search(RetrievalQuery(QUERY)))

        assert report.backfilled_count == 6
        assert in_flight["max"] == 2

    def test_failed_write_back_still_scores(self, rag_config, make_document, stub_embeddings):
        """A write-back error is logged; the document is still ranked with its new vector."""
        class ReadOnlyStore(InMemoryDocumentStore):
            async def update_embedding(self, document_id, embedding):
                raise RuntimeError("database is read-only")

        store = ReadOnlyStore([
            make_document("a", content="chain rule"),
            make_document("b", content="product rule"),
        ])
        embeddings = stub_embeddings({QUERY: [1.0, 0.0], "chain rule": [1.0, 0.0], "product rule": [1.0, 0.0]})
        retriever = make_retriever(rag_config, store, embeddings)

        report = asyncio.run(retriever.search(RetrievalQuery(QUERY)))

        assert [r.document.id for r in report.results] == ["a", "b"]
        assert report.backfilled_count == 0
        assert asyncio.run(store.get("a")).embedding is None

    def test_embedding_error_skips_document(self, rag_config, make_document, stub_embeddings):
        class ExplodingEmbeddings(stub_embeddings):
            async def embed(self, text):
                if text == "broken":
                    raise RuntimeError("tokenizer crashed")
                return await super().embed(text)

        store = InMemoryDocumentStore([
            make_document("ok", content="chain rule"),
            make_document("bad", content="broken"),
        ])
        embeddings = ExplodingEmbeddings({QUERY: [1.0, 0.0], "chain rule": [1.0, 0.0]})
        retriever = make_retriever(rag_config, store, embeddings)

        report = asyncio.run(retriever.search(RetrievalQuery(QUERY)))

        assert [r.document.id for r in report.results] == ["ok"]
        assert report.candidates_count == 2


class TestUsageTracking:
    """Tests for usage statistics of returned documents."""

    def test_returned_documents_counted(self, rag_config, ranked_corpus, stub_embeddings):
        embeddings = stub_embeddings({QUERY: [1.0, 0.0]})
        retriever = make_retriever(rag_config, ranked_corpus, embeddings)
        before = datetime.now(timezone.utc)

        asyncio.run(retriever.retrieve(RetrievalQuery(QUERY, limit=2)))
        asyncio.run(retriever.retrieve(RetrievalQuery(QUERY, limit=1)))

        d1 = asyncio.run(ranked_corpus.get("d1"))
        d2 = asyncio.run(ranked_corpus.get("d2"))
        d3 = asyncio.run(ranked_corpus.get("d3"))

        assert d1.usage_count == 2
        assert d2.usage_count == 1
        assert d3.usage_count == 0
        assert d1.last_used_at >= before
        assert d3.last_used_at is None

    def test_usage_failure_does_not_fail_retrieval(self, rag_config, ranked_corpus, stub_embeddings):
        class FlakyStore(InMemoryDocumentStore):
            async def update_usage(self, document_id, used_at):
                raise RuntimeError("database is locked")

        store = FlakyStore([
            doc for doc in asyncio.run(ranked_corpus.find(RetrievalQuery(QUERY).to_filter()))
        ])
        embeddings = stub_embeddings({QUERY: [1.0, 0.0]})
        retriever = make_retriever(rag_config, store, embeddings)

        results = asyncio.run(retriever.retrieve(RetrievalQuery(QUERY, limit=2)))

        assert [r.document.id for r in results] == ["d1", "d2"]


class TestBuildQuery:
    """Tests for configuration defaults."""

    def test_citation_mode_uses_citation_top_k(self, rag_config, stub_embeddings):
        retriever = make_retriever(rag_config, InMemoryDocumentStore(), stub_embeddings())
        query = retriever.build_query(QUERY)

        assert query.limit == 5
        assert query.threshold == 0.7

    def test_plain_mode_uses_top_k(self, rag_config, stub_embeddings):
        rag_config.use_citations = False
        retriever = make_retriever(rag_config, InMemoryDocumentStore(), stub_embeddings())

        assert retriever.build_query(QUERY).limit == 3

    def test_explicit_values_win(self, rag_config, stub_embeddings):
        retriever = make_retriever(rag_config, InMemoryDocumentStore(), stub_embeddings())
        query = retriever.build_query(QUERY, topic="Calculus", user_id="u1", limit=1, threshold=0.2)

        assert (query.topic, query.user_id, query.limit, query.threshold) == ("Calculus", "u1", 1, 0.2)
