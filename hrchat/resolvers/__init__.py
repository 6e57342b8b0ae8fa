"""
Intent resolvers. Both implementations share the text -> Intent contract and
are selected by the `resolver` config setting.
"""
from typing import Optional

from hrchat.core.config import RESOLVER_LLM, RESOLVER_PATTERN, HRChatConfig
from hrchat.resolvers.base import ResolveContext, Resolver
from hrchat.resolvers.llm_resolver import LLMResolver
from hrchat.resolvers.pattern_resolver import PatternResolver

__all__ = ["ResolveContext", "Resolver", "LLMResolver", "PatternResolver", "build_resolver"]


def build_resolver(config: HRChatConfig, llm_client: Optional[object] = None) -> Resolver:
    name = (config.resolver or "").strip().lower()
    if name == RESOLVER_LLM:
        return LLMResolver(config, client=llm_client)
    if name == RESOLVER_PATTERN:
        return PatternResolver()
    raise ValueError(f"Unknown resolver {config.resolver!r}; expected {RESOLVER_LLM!r} or {RESOLVER_PATTERN!r}")
