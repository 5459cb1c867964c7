"""Tests for chunk indexing and top-k retrieval."""

import numpy as np
import pytest

from conftest import FakeEmbedder
from lexai.errors import EmbeddingError, IndexNotFoundError
from lexai.models import DocumentChunk
from lexai.services.vector_store import VectorStore, cosine_scores

CHUNKS = [
    "The tenant shall pay rent monthly.",
    "Section 302 defines murder and its punishment.",
    "Notices must be delivered in writing.",
    "Section 420 deals with cheating.",
]


@pytest.fixture
def store(db_session):
    return VectorStore(db_session, FakeEmbedder())


class TestCosineScores:
    def test_identical_vectors_score_one(self):
        matrix = np.array([[1.0, 2.0, 3.0]], dtype=np.float32)
        assert cosine_scores(matrix, matrix[0])[0] == pytest.approx(1.0)

    def test_zero_vector_scores_zero(self):
        matrix = np.array([[0.0, 0.0], [1.0, 0.0]], dtype=np.float32)
        scores = cosine_scores(matrix, np.array([1.0, 0.0], dtype=np.float32))
        assert scores[0] == 0.0
        assert scores[1] == pytest.approx(1.0)


class TestIndexAndRetrieve:
    def test_most_relevant_first(self, store):
        store.index(1, CHUNKS)
        results = store.retrieve(1, "What does Section 302 define?", k=2)
        assert "Section 302 defines murder" in results[0].text
        assert results[0].metadata["chunkIndex"] == 1
        assert results[0].metadata["documentId"] == 1

    def test_top_k_cutoff(self, store):
        store.index(1, CHUNKS)
        assert len(store.retrieve(1, "rent", k=3)) == 3
        assert len(store.retrieve(1, "rent", k=10)) == len(CHUNKS)

    def test_ties_keep_chunk_order(self, store):
        store.index(1, ["bail granted", "bail granted", "bail granted"])
        results = store.retrieve(1, "bail granted", k=3)
        assert [r.metadata["chunkIndex"] for r in results] == [0, 1, 2]

    def test_reindex_replaces_previous_collection(self, store, db_session):
        store.index(1, CHUNKS)
        store.index(1, ["Only the new chunk about bail."])
        results = store.retrieve(1, "bail", k=5)
        assert [r.text for r in results] == ["Only the new chunk about bail."]
        assert db_session.query(DocumentChunk).filter_by(document_id=1).count() == 1

    def test_collections_are_per_document(self, store):
        store.index(1, CHUNKS)
        store.index(2, ["Unrelated contract text."])
        assert all(r.metadata["documentId"] == 1 for r in store.retrieve(1, "contract", k=5))

    def test_never_indexed_raises(self, store):
        with pytest.raises(IndexNotFoundError):
            store.retrieve(42, "anything")

    def test_delete_drops_index(self, store):
        store.index(1, CHUNKS)
        assert store.delete(1) == len(CHUNKS)
        with pytest.raises(IndexNotFoundError):
            store.retrieve(1, "rent")

    def test_embedding_failure_keeps_existing_index(self, db_session):
        embedder = FakeEmbedder()
        store = VectorStore(db_session, embedder)
        store.index(1, CHUNKS)

        embedder.fail = True
        with pytest.raises(EmbeddingError):
            store.index(1, ["replacement"])

        assert len(store.retrieve(1, "rent", k=10)) == len(CHUNKS)
