"""
LLM intent classifier.

Sends the authorized snapshot, the trailing conversation and the user's text
to an OpenAI-compatible chat completion endpoint (Ollama, vLLM, OpenAI...)
and turns whatever comes back into a validated Intent.
"""
from typing import Dict, List, Optional

import openai
from openai import OpenAI

from hrchat.core.config import HRChatConfig
from hrchat.core.errors import UpstreamError
from hrchat.parsing.response_extractor import parse_intent
from hrchat.resolvers.base import ResolveContext
from hrchat.resolvers.prompts import build_system_prompt
from hrchat.utils.logger import get_logger

logger = get_logger("resolvers.llm")

# Local endpoints ignore the key, but the client requires one
_PLACEHOLDER_API_KEY = "not-needed"


def _base_url(api_url: str) -> str:
    """Accept either the API root or the full /chat/completions URL."""
    url = api_url.rstrip("/")
    suffix = "/chat/completions"
    return url[: -len(suffix)] if url.endswith(suffix) else url


class LLMResolver:
    deterministic = False

    def __init__(self, config: HRChatConfig, client: Optional[OpenAI] = None):
        self.model = config.llm_model
        self.temperature = config.llm_temperature
        # No retries: a slow or failing endpoint surfaces as UpstreamError
        # instead of holding the request open.
        self.client = client or OpenAI(
            base_url=_base_url(config.llm_api_url),
            api_key=config.llm_api_key or _PLACEHOLDER_API_KEY,
            timeout=config.llm_timeout_seconds,
            max_retries=0,
        )

    def build_messages(self, text: str, context: ResolveContext) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": build_system_prompt(context.requester, context.snapshot)},
            *context.history,
            {"role": "user", "content": text},
        ]

    def resolve(self, text: str, context: ResolveContext):
        messages = self.build_messages(text, context)
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except openai.APIError as e:
            logger.error(f"Intent classification request failed: {e}")
            raise UpstreamError("Intent classification request failed", cause=e) from e

        raw = ""
        if completion.choices:
            raw = completion.choices[0].message.content or ""
        logger.debug(f"Classifier output: {raw[:500]}")
        return parse_intent(raw)
