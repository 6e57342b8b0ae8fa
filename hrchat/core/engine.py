"""
Chat engine: one sequential flow per query.

    validate -> fetch authorized snapshot -> load session + context
             -> resolve intent -> dispatch -> append history -> respond

Nothing is appended to history unless dispatch finished; an UpstreamError
from the classifier propagates before any mutation or history write.
"""
from typing import Any, Dict

from hrchat.actions.dispatcher import ACTION_QUERY, ActionDispatcher
from hrchat.cache.cache import make_chat_query_key
from hrchat.core.errors import ValidationError
from hrchat.core.intents import Requester
from hrchat.history.session_history import SessionHistoryManager
from hrchat.parsing.filters import scope_filter
from hrchat.resolvers.base import ResolveContext, Resolver
from hrchat.utils.logger import get_logger

logger = get_logger("core.engine")


class ChatEngine:
    def __init__(
        self,
        store,
        resolver: Resolver,
        dispatcher: ActionDispatcher,
        history: SessionHistoryManager,
        cache=None,
        query_cache_ttl: int = 0,
    ):
        self.store = store
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.history = history
        self.cache = cache
        self.query_cache_ttl = query_cache_ttl

    @property
    def response_caching(self) -> bool:
        """Only deterministic answers are cached."""
        return bool(self.cache is not None and self.query_cache_ttl > 0 and self.resolver.deterministic)

    def handle_query(self, text: Any, requester: Requester) -> Dict[str, Any]:
        """
        Answer one chat query.

        Returns:
            {"results": [EmployeeRef, ...], "message": str}

        Raises:
            ValidationError: empty or non-text query
            UpstreamError: classifier endpoint failed or timed out
        """
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Query is required")
        text = text.strip()

        chat = self.history.get_or_create(requester.username)

        cache_key = None
        if self.response_caching:
            cache_key = make_chat_query_key(requester.username, requester.role, text)
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.info(f"Chat answer cache hit for {requester.username}")
                self.history.append(chat, text, cached.get("message", ""))
                return cached

        snapshot = self.store.fetch_snapshot(scope_filter(requester))
        context = ResolveContext(
            requester=requester,
            snapshot=snapshot,
            history=self.history.context_window(chat),
        )

        intent = self.resolver.resolve(text, context)
        logger.info(f"Resolved {requester.username}'s query to intent={intent.intent}")

        outcome = self.dispatcher.dispatch(intent, snapshot, requester)
        self.history.append(chat, text, outcome.message)

        payload = {"results": outcome.results, "message": outcome.message}
        if cache_key is not None and outcome.action == ACTION_QUERY:
            self.cache.set(cache_key, payload, self.query_cache_ttl)
        return payload
