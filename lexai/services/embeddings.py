# lexai/services/embeddings.py

from typing import List, Sequence

import numpy as np
from openai import OpenAI, OpenAIError

from lexai.config import settings
from lexai.errors import EmbeddingError
from lexai.utils.logging import logger

# OpenAI accepts up to 2048 inputs per request; stay well below
BATCH_SIZE = 100


class OpenAIEmbedder:
    """Embeds text with the OpenAI embeddings endpoint, returning float32 arrays."""

    def __init__(self, client: OpenAI, model: str):
        self.client = client
        self.model = model

    def _embed(self, texts: List[str]) -> np.ndarray:
        try:
            resp = self.client.embeddings.create(model=self.model, input=texts)
            vectors = [item.embedding for item in sorted(resp.data, key=lambda d: d.index)]
        except OpenAIError as exc:
            logger.exception(f"Embedding creation failed: {exc}")
            raise EmbeddingError() from exc
        except (AttributeError, TypeError) as exc:
            logger.exception(f"Malformed embedding response: {exc}")
            raise EmbeddingError() from exc

        if len(vectors) != len(texts):
            logger.error(f"Embedding response has {len(vectors)} vectors for {len(texts)} inputs")
            raise EmbeddingError()
        return np.asarray(vectors, dtype=np.float32)

    def embed_documents(self, texts: Sequence[str]) -> np.ndarray:
        texts = list(texts)
        logger.info(f"Creating embeddings for {len(texts)} chunks")
        if not texts:
            return np.zeros((0, 0), dtype=np.float32)

        batches = [
            self._embed(texts[i:i + BATCH_SIZE]) for i in range(0, len(texts), BATCH_SIZE)
        ]
        embeddings = np.vstack(batches)
        logger.debug(f"Embeddings created successfully; shape={embeddings.shape}")
        return embeddings

    def embed_query(self, text: str) -> np.ndarray:
        logger.info(f"Creating query embedding for content length={len(text)}")
        return self._embed([text])[0]


client = OpenAI(
    api_key=settings.openai_api_key,
    timeout=settings.llm_timeout,
    max_retries=0,
)
embedder = OpenAIEmbedder(client, settings.embedding_model)


def get_embedder() -> OpenAIEmbedder:
    return embedder
