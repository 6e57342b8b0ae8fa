"""
Prompt templates for the intent classifier.

Kept apart from the resolver so prompt wording can change without touching
the request/parse logic.
"""
import json
from typing import Any, Dict, List

from hrchat.core.intents import Requester

# ============================================================================
# Intent Classification
# ============================================================================

INTENT_CLASSIFICATION_PROMPT = """You are an intelligent HR Assistant capable of performing actions.

CURRENT USER CONTEXT:
- Role: {role}
- Username: {username}

EXISTING DATA (use ids from here for updates/deletes; you cannot see or change anything else):
{snapshot}

YOUR GOAL:
Classify the user's intent as exactly one of: "query", "create", "update", "delete".

RESPONSE FORMAT (a single JSON object, nothing else):

1. FOR QUERIES (searching, counting, calculating):
{{"intent": "query", "message": "Answer to the question.", "matching_ids": ["id1", "id2"]}}
   matching_ids lists the ids from EXISTING DATA the answer refers to (empty if none).

2. FOR CREATE (e.g. "Hire John Doe as Dev"):
{{"intent": "create", "data": {{"name": "String", "position": "String", "department": "String", "salary": "String"}}}}

3. FOR UPDATE (e.g. "Give John a raise to 80k"):
{{"intent": "update", "target_name": "Name to find ID", "target_id": "Exact id from EXISTING DATA", "update_fields": {{"salary": "80000"}}}}

4. FOR DELETE (e.g. "Fire John"):
{{"intent": "delete", "target_name": "Name", "target_id": "Exact id from EXISTING DATA"}}

If the employee is not in EXISTING DATA, leave target_id empty."""


def build_system_prompt(requester: Requester, snapshot: List[Dict[str, Any]]) -> str:
    """System prompt with the requester context and the authorized records embedded."""
    return INTENT_CLASSIFICATION_PROMPT.format(
        role=requester.role,
        username=requester.username,
        snapshot=json.dumps(snapshot, default=str),
    )
