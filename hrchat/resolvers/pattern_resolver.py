"""
Deterministic resolver: regex rules -> Filter -> QueryIntent.

Runs entirely against the authorized snapshot and never produces a mutation;
the rule table only understands reads.
"""
from typing import Any, Dict, List

from hrchat.core.intents import QueryIntent
from hrchat.parsing.filters import QueryPlan, apply_plan, plan_query
from hrchat.resolvers.base import ResolveContext
from hrchat.utils.logger import get_logger

logger = get_logger("resolvers.pattern")

NO_MATCH_MESSAGE = "No employees found matching your query."


def _format_salary(value: Any) -> str:
    if value is None:
        return "no salary on record"
    amount = float(value)
    return f"{amount:,.0f}" if amount.is_integer() else f"{amount:,.2f}"


def describe(plan: QueryPlan, rows: List[Dict[str, Any]]) -> str:
    if not rows:
        return NO_MATCH_MESSAGE
    if plan.superlative:
        top = rows[0]
        return (f"The employee with the {plan.superlative} salary is "
                f"{top.get('name')} ({_format_salary(top.get('salary'))}).")
    return f"Found {len(rows)} matching employee(s)."


class PatternResolver:
    deterministic = True

    def resolve(self, text: str, context: ResolveContext) -> QueryIntent:
        plan = plan_query(text, context.requester)
        rows = apply_plan(plan, context.snapshot)
        logger.debug(f"Pattern plan {plan.filter!r} matched {len(rows)} of {len(context.snapshot)} records")
        return QueryIntent(message=describe(plan, rows), matching_ids=[r["id"] for r in rows])
