#lexai/services/vector_store.py

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np
from fastapi import Depends
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from .embeddings import OpenAIEmbedder, get_embedder
from lexai.db import get_db
from lexai.errors import IndexNotFoundError
from lexai.models import DocumentChunk
from lexai.utils.logging import logger


@dataclass
class RetrievedChunk:
    text: str
    metadata: dict = field(default_factory=dict)


def cosine_scores(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    norms[norms == 0] = 1.0
    return (matrix @ query) / norms


class VectorStore:
    """
    Per-document chunk index kept in the document_chunks table.

    Ranking is cosine similarity computed in numpy; equal scores keep the
    original chunk order.
    """

    def __init__(self, db: Session, embedder: OpenAIEmbedder):
        self.db = db
        self.embedder = embedder
        logger.debug("VectorStore instance created")

    def index(self, document_id: int, chunks: Sequence[str], commit: bool = True) -> int:
        """(Re)build the index for a document. The previous index, if any, is replaced."""
        logger.info(f"Indexing document_id={document_id}: {len(chunks)} chunks")
        # embed first so a provider failure leaves any existing index untouched
        vectors = self.embedder.embed_documents(chunks)

        try:
            self.db.execute(
                delete(DocumentChunk).where(DocumentChunk.document_id == document_id)
            )
            for idx, (chunk, vec) in enumerate(zip(chunks, vectors)):
                self.db.add(
                    DocumentChunk(
                        document_id=document_id,
                        chunk_index=idx,
                        content=chunk,
                        embedding=np.asarray(vec, dtype=np.float32).tobytes(),
                    )
                )
            if commit:
                self.db.commit()
            else:
                self.db.flush()
        except Exception as exc:
            self.db.rollback()
            logger.exception(f"Error indexing document_id={document_id}: {exc}")
            raise

        logger.info(f"Indexed document_id={document_id} (commit={commit})")
        return len(chunks)

    def retrieve(self, document_id: int, query: str, k: int = 5) -> List[RetrievedChunk]:
        logger.info(f"Retrieving top_k={k} chunks for document_id={document_id}")
        rows = self.db.scalars(
            select(DocumentChunk)
            .where(DocumentChunk.document_id == document_id)
            .order_by(DocumentChunk.chunk_index)
        ).all()
        if not rows:
            logger.warning(f"No index for document_id={document_id}")
            raise IndexNotFoundError()

        query_vec = np.asarray(self.embedder.embed_query(query), dtype=np.float32)
        matrix = np.vstack([np.frombuffer(row.embedding, dtype=np.float32) for row in rows])
        scores = cosine_scores(matrix, query_vec)

        # stable sort keeps chunk order among equal scores
        order = np.argsort(-scores, kind="stable")[:k]
        results = [
            RetrievedChunk(
                text=rows[i].content,
                metadata={
                    "documentId": document_id,
                    "chunkIndex": rows[i].chunk_index,
                    "score": float(scores[i]),
                },
            )
            for i in order
        ]
        logger.info(f"retrieve returned {len(results)} chunks")
        return results

    def delete(self, document_id: int, commit: bool = True) -> int:
        removed = self.db.execute(
            delete(DocumentChunk).where(DocumentChunk.document_id == document_id)
        ).rowcount
        if commit:
            self.db.commit()
        logger.info(f"Removed {removed} chunks for document_id={document_id}")
        return removed


def get_vector_store(
    db: Session = Depends(get_db),
    embedder: OpenAIEmbedder = Depends(get_embedder),
) -> VectorStore:
    return VectorStore(db, embedder)
