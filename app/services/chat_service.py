"""
Dealer chat assistant

Answers come from the SEO knowledge base first. When an Anthropic key is
configured the question goes to Claude, with the knowledge-base answer (and
the dealership's package context) as grounding. Any LLM failure falls back
to the knowledge base.
"""
import uuid
from datetime import datetime
from typing import Optional

from anthropic import Anthropic

from app.config import get_settings
from app.models.tenant import Dealership
from app.services.package_catalog import get_package
from app.services.seo_knowledge import FALLBACK_ANSWER, find_answer
from app.services.tenant_service import current_usage
from app.utils.logger import log

SYSTEM_PROMPT = """You are an automotive SEO assistant for car dealerships.
Answer questions about the dealership's SEO package, content, rankings and analytics.
Be concise and specific. If you are unsure, suggest escalating to the SEO team."""


class ChatService:
    """Knowledge base plus optional Claude responses"""

    def __init__(self):
        settings = get_settings()
        self.model = settings.llm_model
        self.max_tokens = settings.llm_max_tokens
        self.client = None
        if settings.enable_llm_chat and settings.anthropic_api_key:
            self.client = Anthropic(api_key=settings.anthropic_api_key)

    def is_available(self) -> bool:
        return self.client is not None

    def _dealership_context(self, dealership: Optional[Dealership]) -> str:
        if dealership is None or not dealership.package_type:
            return ""
        package = get_package(dealership.package_type)
        usage = current_usage(dealership)
        return (
            f"Dealership: {dealership.name}\n"
            f"Package: {package.name} ({package.total_tasks} deliverables per month)\n"
            f"Used this period: {usage}\n"
        )

    def _ask_llm(self, message: str, kb_answer: Optional[str], dealership: Optional[Dealership]) -> str:
        context = self._dealership_context(dealership)
        prompt = message
        if context or kb_answer:
            prompt = (
                f"{context}"
                f"{'Reference answer: ' + kb_answer if kb_answer else ''}\n\n"
                f"Question: {message}"
            )
        response = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.content[0].text

    def answer(self, message: str, dealership: Optional[Dealership] = None, conversation_id: Optional[str] = None) -> dict:
        kb_answer = find_answer(message)
        source = "knowledge_base"
        content = kb_answer or FALLBACK_ANSWER

        if self.is_available():
            try:
                content = self._ask_llm(message, kb_answer, dealership)
                source = "llm"
            except Exception as e:
                log.warning(f"LLM chat failed, falling back to knowledge base: {str(e)}")

        log.info(f"Chat answered from {source} (kb_match={kb_answer is not None}, length={len(message)})")
        return {
            "id": uuid.uuid4().hex,
            "content": content,
            "conversationId": conversation_id or f"kb-{uuid.uuid4().hex[:8]}",
            "source": source,
            "timestamp": datetime.utcnow().isoformat(),
        }
