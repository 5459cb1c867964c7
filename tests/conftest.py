"""
Shared fixtures for the LexAI test suite.

Required settings are placed in the environment before anything from lexai is
imported. Every API test runs against a fresh in-memory SQLite database with
deterministic stand-ins for the embedding provider and the chat model.
"""

import os
import re
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="lexai-logs-"))

import numpy as np
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lexai.db import Base, get_db
from lexai.errors import EmbeddingError
from lexai.main import app
from lexai.rate_limit import RateLimiter, get_rate_limiter
from lexai.services.embeddings import get_embedder
from lexai.services.llm import get_llm


# ---------------------------------------------------------------------------
# Deterministic stand-ins for the external providers
# ---------------------------------------------------------------------------

class FakeEmbedder:
    """Bag-of-words vectors over a growing vocabulary: texts sharing words score higher."""

    dim = 4096

    def __init__(self):
        self.fail = False
        self.vocab = {}

    def _vector(self, text):
        vec = np.zeros(self.dim, dtype=np.float32)
        for token in re.findall(r"[a-z0-9]+", text.lower()):
            vec[self.vocab.setdefault(token, len(self.vocab))] += 1.0
        return vec

    def embed_documents(self, texts):
        if self.fail:
            raise EmbeddingError()
        return np.vstack([self._vector(t) for t in texts])

    def embed_query(self, text):
        return self._vector(text)


class FakeLLM:
    """Records prompts and returns canned answers."""

    def __init__(self):
        self.calls = []
        self.error = None

    def _respond(self, name, *args):
        self.calls.append((name, args))
        if self.error is not None:
            raise self.error

    def answer_from_context(self, query, context_chunks):
        self._respond("answer_from_context", query, list(context_chunks))
        return f"Answer to '{query}' from {len(context_chunks)} passages."

    def draft_argument(self, title, jurisdiction, case_type, acts, facts, side):
        self._respond("draft_argument", title, jurisdiction, case_type, acts, facts, side)
        return f"Submission on behalf of the {side} in {title}."

    def explain_law_query(self, query):
        self._respond("explain_law_query", query)
        return f"Explanation of {query}."


class FakeClock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


# ---------------------------------------------------------------------------
# PDF builder
# ---------------------------------------------------------------------------

def _pdf_escape(text):
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def make_pdf(lines):
    """Build a single-page PDF whose text layer holds the given lines."""
    body = "\n".join(f"({_pdf_escape(line)}) Tj T*" for line in lines)
    stream = f"BT /F1 10 Tf 14 TL 72 760 Td\n{body}\nET".encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, obj in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + obj + b"\nendobj\n"

    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        len(objects) + 1,
        xref_at,
    )
    return bytes(out)


FILLER = [
    "The tenant shall pay rent on the first day of every month.",
    "Either party may terminate the lease with thirty days notice.",
    "Maintenance of common areas is the responsibility of the landlord.",
    "All notices must be delivered in writing to the registered address.",
    "The security deposit is refundable within fifteen days of vacating.",
    "Subletting requires prior written consent from the owner.",
]


@pytest.fixture
def sample_pdf():
    lines = FILLER * 4 + ["Section 302 defines murder."] + FILLER * 4
    return make_pdf(lines)


# ---------------------------------------------------------------------------
# App fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    yield session
    session.close()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def limiter():
    return RateLimiter(limit=1000, window_seconds=60)


@pytest.fixture
def client(engine, embedder, llm, limiter):
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_embedder] = lambda: embedder
    app.dependency_overrides[get_llm] = lambda: llm
    app.dependency_overrides[get_rate_limiter] = lambda: limiter

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def register_user(client, username="advocate", password="s3cret-pass"):
    response = client.post(
        "/api/auth/register",
        json={
            "username": username,
            "password": password,
            "confirmPassword": password,
            "email": f"{username}@example.com",
            "name": f"Adv. {username.title()}",
        },
    )
    assert response.status_code == 201, response.text
    data = response.json()
    return {"Authorization": f"Bearer {data['token']}"}, data["user"]


@pytest.fixture
def auth_headers(client):
    headers, _ = register_user(client)
    return headers


@pytest.fixture
def other_headers(client):
    headers, _ = register_user(client, username="opponent")
    return headers


def upload(client, headers, data, title="Lease Agreement", filename="lease.pdf"):
    return client.post(
        "/api/pdf/upload",
        headers=headers,
        files={"file": (filename, data, "application/pdf")},
        data={"title": title},
    )
