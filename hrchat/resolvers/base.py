"""
Resolver contract: text + request context -> Intent.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol

from hrchat.core.intents import Requester


@dataclass(frozen=True)
class ResolveContext:
    """Everything a resolver may look at for one request."""
    requester: Requester
    snapshot: List[Dict[str, Any]]
    history: List[Dict[str, str]] = field(default_factory=list)  # [{"role", "content"}], oldest first


class Resolver(Protocol):
    # True when the same text and requester always resolve to the same answer
    deterministic: bool

    def resolve(self, text: str, context: ResolveContext):
        """Return a QueryIntent, CreateIntent, UpdateIntent or DeleteIntent."""
        ...
