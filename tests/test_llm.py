"""Tests for prompt formatting and provider error mapping."""

from unittest.mock import MagicMock

import httpx
import openai
import pytest

from lexai.errors import EmbeddingError, GenerationError
from lexai.services.embeddings import OpenAIEmbedder
from lexai.services.llm import SYSTEM_PROMPT, LegalLLM


def _completion(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


def _timeout():
    return openai.APITimeoutError(request=httpx.Request("POST", "https://api.openai.com/v1"))


@pytest.fixture
def chat_client():
    client = MagicMock()
    client.chat.completions.create.return_value = _completion("Generated text")
    return client


def _sent_prompt(client):
    messages = client.chat.completions.create.call_args.kwargs["messages"]
    assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
    return messages[1]["content"]


class TestLegalLLM:
    def test_answer_from_context_prompt(self, chat_client):
        llm = LegalLLM(chat_client, "gpt-4o-mini")
        answer = llm.answer_from_context(
            "What does Section 302 define?",
            ["Section 302 defines murder.", "Section 300 defines culpable homicide."],
        )
        assert answer == "Generated text"

        prompt = _sent_prompt(chat_client)
        assert "Section 302 defines murder.\n\nSection 300 defines culpable homicide." in prompt
        assert "Question: What does Section 302 define?" in prompt
        assert "don't know" in prompt
        assert "cite specific sections or page numbers" in prompt

    def test_draft_argument_prompt(self, chat_client):
        llm = LegalLLM(chat_client, "gpt-4o-mini")
        llm.draft_argument(
            title="State v. X",
            jurisdiction="Delhi High Court",
            case_type="Criminal",
            acts="IPC 302",
            facts="The accused was found at the scene.",
            side="prosecution",
        )
        prompt = _sent_prompt(chat_client)
        assert "for the prosecution" in prompt
        assert "Case Title: State v. X" in prompt
        assert "Case Type: Criminal" in prompt
        assert "Relevant Acts/Sections: IPC 302" in prompt
        assert "3-5 main arguments" in prompt

    def test_explain_law_query_prompt(self, chat_client):
        LegalLLM(chat_client, "gpt-4o-mini").explain_law_query("Section 498A IPC")
        assert "Query: Section 498A IPC" in _sent_prompt(chat_client)

    def test_braces_in_variables_are_not_reformatted(self, chat_client):
        LegalLLM(chat_client, "gpt-4o-mini").explain_law_query("What is {context}?")
        assert "Query: What is {context}?" in _sent_prompt(chat_client)

    def test_model_and_temperature_passed(self, chat_client):
        LegalLLM(chat_client, "some-model", temperature=0.1).explain_law_query("q")
        kwargs = chat_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "some-model"
        assert kwargs["temperature"] == 0.1

    def test_provider_error_becomes_generation_error(self, chat_client):
        chat_client.chat.completions.create.side_effect = _timeout()
        with pytest.raises(GenerationError):
            LegalLLM(chat_client, "gpt-4o-mini").explain_law_query("q")

    def test_malformed_response_becomes_generation_error(self, chat_client):
        chat_client.chat.completions.create.return_value = MagicMock(choices=[])
        with pytest.raises(GenerationError):
            LegalLLM(chat_client, "gpt-4o-mini").explain_law_query("q")

    def test_empty_content_becomes_generation_error(self, chat_client):
        chat_client.chat.completions.create.return_value = _completion(None)
        with pytest.raises(GenerationError):
            LegalLLM(chat_client, "gpt-4o-mini").explain_law_query("q")


def _embedding_response(vectors):
    response = MagicMock()
    response.data = [MagicMock(index=i, embedding=v) for i, v in enumerate(vectors)]
    return response


class TestOpenAIEmbedder:
    def test_embed_documents_batches(self):
        client = MagicMock()
        client.embeddings.create.side_effect = lambda model, input: _embedding_response(
            [[float(len(t)), 1.0] for t in input]
        )
        embedder = OpenAIEmbedder(client, "text-embedding-3-small")

        vectors = embedder.embed_documents([f"chunk {i}" for i in range(250)])

        assert vectors.shape == (250, 2)
        assert client.embeddings.create.call_count == 3

    def test_embed_query(self):
        client = MagicMock()
        client.embeddings.create.return_value = _embedding_response([[0.5, 0.25]])
        vector = OpenAIEmbedder(client, "m").embed_query("bail")
        assert vector.tolist() == [0.5, 0.25]

    def test_provider_error_becomes_embedding_error(self):
        client = MagicMock()
        client.embeddings.create.side_effect = _timeout()
        with pytest.raises(EmbeddingError):
            OpenAIEmbedder(client, "m").embed_query("bail")

    def test_short_response_becomes_embedding_error(self):
        client = MagicMock()
        client.embeddings.create.return_value = _embedding_response([[1.0]])
        with pytest.raises(EmbeddingError):
            OpenAIEmbedder(client, "m").embed_documents(["a", "b"])
