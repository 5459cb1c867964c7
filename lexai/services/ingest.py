# lexai/services/ingest.py

from pathlib import PurePath
from typing import Optional

from .pdf_processor import process_pdf
from .vector_store import VectorStore
from lexai.models import Document
from lexai.storage import Storage
from lexai.utils.logging import logger


def default_title(filename: Optional[str]) -> str:
    return PurePath(filename or "document.pdf").stem or "Untitled document"


def ingest_pdf(
    storage: Storage,
    store: VectorStore,
    user_id: int,
    data: bytes,
    filename: str,
    title: Optional[str] = None,
) -> Document:
    """
    Extract, chunk, persist and index an uploaded PDF.

    The document row and its chunk index are committed together: if indexing
    fails nothing is persisted.
    """
    title = (title or "").strip() or default_title(filename)
    logger.info(f"[INGEST] user_id={user_id}, filename={filename}, title={title}")

    processed = process_pdf(data, filename)

    try:
        document = storage.create_document(
            user_id=user_id,
            title=title,
            content=processed.full_text,
            metadata={
                "filename": filename,
                "size": len(data),
                "chunks": len(processed.chunks),
            },
            commit=False,
        )
        store.index(document.id, processed.chunks, commit=False)
        storage.commit()
    except Exception:
        logger.exception(f"[INGEST] Failed to persist/index {filename}; rolling back")
        storage.rollback()
        raise

    logger.info(
        f"[INGEST] Document {document.id} stored with {len(processed.chunks)} chunks"
    )
    return document
