#lexai/services/llm.py

from typing import Sequence

from openai import OpenAI, OpenAIError

from .embeddings import client
from lexai.config import settings
from lexai.errors import GenerationError
from lexai.utils.logging import logger

SYSTEM_PROMPT = "You are LexAI, an AI assistant for legal professionals in India."

PDF_QUERY_PROMPT = """\
Use the following pieces of context to answer the user's question.
If you don't know the answer, just say that you don't know, don't try to make up an answer.
Always cite specific sections or page numbers when referencing information from the document.

Context:
{context}

Question: {question}

Answer:
"""

LEGAL_ARGUMENT_PROMPT = """\
Generate structured legal arguments for the {side} based on the following case details.
Your response should follow formal legal argument structure with citations to relevant laws, precedents, and sections.
Focus on Indian legal context and jurisdiction.

Case Title: {title}
Jurisdiction: {jurisdiction}
Case Type: {type}
Relevant Acts/Sections: {acts}
Case Facts: {facts}

Generate a formal legal argument with:
1. Introduction/Summary
2. 3-5 main arguments with supporting citations
3. Conclusion
4. Format as if it's a formal legal submission

Your response:
"""

LAW_SEARCH_PROMPT = """\
Provide a clear, concise explanation of the following legal query:

Query: {query}

Explain this legal concept, section, or act in the context of Indian law. Include:
1. The exact text of the section/act (if applicable)
2. Key interpretations from important case laws
3. Recent amendments or changes (if any)
4. Practical application in legal proceedings

Your response:
"""


class LegalLLM:
    """Formats one of the fixed prompt templates and sends it to the chat model."""

    def __init__(self, client: OpenAI, model: str, temperature: float = 0.7):
        self.client = client
        self.model = model
        self.temperature = temperature

    def call_chat_model(self, user_prompt: str) -> str:
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
            )
            content = resp.choices[0].message.content
        except OpenAIError as exc:
            logger.exception(f"Chat completion failed: {exc}")
            raise GenerationError() from exc
        except (AttributeError, IndexError, TypeError) as exc:
            logger.exception(f"Malformed chat completion response: {exc}")
            raise GenerationError() from exc

        if not content:
            logger.error("Chat completion returned empty content")
            raise GenerationError()
        return content

    def answer_from_context(self, query: str, context_chunks: Sequence[str]) -> str:
        logger.info(
            f"answer_from_context: query_len={len(query)}, context_chunks={len(context_chunks)}"
        )
        prompt = PDF_QUERY_PROMPT.format(context="\n\n".join(context_chunks), question=query)
        answer = self.call_chat_model(prompt)
        logger.info(f"PDF answer generated: answer_len={len(answer)}")
        return answer

    def draft_argument(
        self,
        title: str,
        jurisdiction: str,
        case_type: str,
        acts: str,
        facts: str,
        side: str,
    ) -> str:
        logger.info(f"draft_argument: title={title}, side={side}")
        prompt = LEGAL_ARGUMENT_PROMPT.format(
            title=title,
            jurisdiction=jurisdiction,
            type=case_type,
            acts=acts,
            facts=facts,
            side=side,
        )
        return self.call_chat_model(prompt)

    def explain_law_query(self, query: str) -> str:
        logger.info(f"explain_law_query: query='{query[:100]}{'...' if len(query) > 100 else ''}'")
        return self.call_chat_model(LAW_SEARCH_PROMPT.format(query=query))


llm = LegalLLM(client, settings.chat_model, settings.llm_temperature)


def get_llm() -> LegalLLM:
    return llm
