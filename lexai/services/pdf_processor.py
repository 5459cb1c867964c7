# lexai/services/pdf_processor.py

import io
import re
from dataclasses import dataclass
from typing import List

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from lexai.config import settings
from lexai.errors import ExtractionError
from lexai.utils.logging import logger

# Coarsest first: paragraphs, lines, sentences, words
_SEPARATORS = [r"\n\s*\n", r"\n", r"(?<=[.!?])\s+", r" "]


@dataclass
class ProcessedPdf:
    full_text: str
    chunks: List[str]


def extract_text(data: bytes, filename: str = "upload.pdf") -> str:
    logger.info(f"Extracting text from PDF: {filename}, size={len(data)}")
    try:
        reader = PdfReader(io.BytesIO(data))
        text = "\n\n".join(page.extract_text() or "" for page in reader.pages)
    except (PyPdfError, ValueError, TypeError, KeyError, AttributeError) as exc:
        logger.warning(f"Failed to parse PDF {filename}: {exc}")
        raise ExtractionError("Uploaded file is not a readable PDF") from exc

    logger.info(f"Extracted {len(text)} characters from {filename}")
    return text


def _split_on(text: str, separator: str) -> List[str]:
    return [p for p in re.split(separator, text) if p]


def _split_recursive(text: str, chunk_size: int, separators: List[str]) -> List[str]:
    """Break text into pieces no longer than chunk_size, preferring the coarsest separator."""
    if len(text) <= chunk_size:
        return [text]
    if not separators:
        return [text[i:i + chunk_size] for i in range(0, len(text), chunk_size)]

    separator, rest = separators[0], separators[1:]
    pieces: List[str] = []
    for part in _split_on(text, separator):
        if len(part) <= chunk_size:
            pieces.append(part)
        else:
            pieces.extend(_split_recursive(part, chunk_size, rest))
    return pieces


def _tail(text: str, size: int) -> str:
    """Last `size` characters of text, moved forward to a word boundary when one exists."""
    if size <= 0:
        return ""
    if len(text) <= size:
        return text
    tail = text[-size:]
    cut = tail.find(" ")
    if 0 <= cut < len(tail) - 1:
        tail = tail[cut + 1:]
    return tail


def split_text(
    text: str,
    chunk_size: int = None,
    chunk_overlap: int = None,
) -> List[str]:
    """
    Split text into overlapping chunks of at most chunk_size characters.

    Pieces are cut on paragraph, line, sentence and word boundaries where
    possible, then packed greedily. Each new chunk starts with up to
    chunk_overlap characters from the end of the previous one.
    """
    chunk_size = chunk_size or settings.chunk_size
    chunk_overlap = settings.chunk_overlap if chunk_overlap is None else chunk_overlap
    if chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be smaller than chunk_size")

    text = text.strip()
    if not text:
        return []

    chunks: List[str] = []
    current = ""
    for piece in _split_recursive(text, chunk_size, _SEPARATORS):
        piece = piece.strip()
        if not piece:
            continue
        candidate = f"{current} {piece}" if current else piece
        if len(candidate) <= chunk_size:
            current = candidate
            continue

        chunks.append(current)
        overlap = _tail(current, min(chunk_overlap, chunk_size - len(piece) - 1))
        current = f"{overlap} {piece}" if overlap else piece

    if current:
        chunks.append(current)

    logger.debug(f"split_text produced {len(chunks)} chunks from {len(text)} characters")
    return chunks


def process_pdf(data: bytes, filename: str = "upload.pdf") -> ProcessedPdf:
    full_text = extract_text(data, filename)
    if not full_text.strip():
        logger.warning(f"No extractable text in {filename}")
        raise ExtractionError("PDF contains no extractable text")

    chunks = split_text(full_text)
    logger.info(f"Processed PDF {filename}: {len(chunks)} chunks")
    return ProcessedPdf(full_text=full_text, chunks=chunks)
