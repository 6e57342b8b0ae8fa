"""
Tests for the filter tree, the filter builder and query plans.
"""

from hrchat.core.intents import Requester
from hrchat.parsing.filters import (
    AllOf,
    AnyOf,
    Compare,
    Contains,
    Equals,
    MatchAll,
    Range,
    all_of,
    apply_plan,
    plan_query,
)

ADMIN = Requester("root", "admin")
BOB = Requester("bob", "user")


def _records():
    return [
        {"id": "1", "name": "Alice Smith", "position": "Engineer", "department": "Engineering", "salary": 120000.0, "createdBy": "alice"},
        {"id": "2", "name": "John Doe", "position": "Developer", "department": "Engineering", "salary": 95000.0, "createdBy": "bob"},
        {"id": "3", "name": "Mary Jones", "position": "Accountant", "department": "Finance", "salary": 70000.0, "createdBy": "alice"},
        {"id": "4", "name": "Carol King", "position": "Director", "department": "Sales", "salary": 150000.0, "createdBy": "bob"},
        {"id": "5", "name": "John Park", "position": "Designer", "department": "Marketing", "salary": 60000.0, "createdBy": "alice"},
    ]


def _ids(rows):
    return [r["id"] for r in rows]


# ── Nodes ───────────────────────────────────────────────────────────────

class TestNodes:
    def test_contains_is_case_insensitive(self):
        assert Contains("name", "JOHN").matches({"name": "John Doe"})

    def test_contains_is_literal(self):
        # Regex/LIKE metacharacters match themselves
        assert Contains("name", "50%").matches({"name": "Top 50% Club"})
        assert not Contains("name", "j.hn").matches({"name": "John"})

    def test_missing_values_never_match(self):
        assert not Contains("position", "dev").matches({"position": None})
        assert not Compare("salary", "gt", 0).matches({"salary": None})
        assert not Range("salary", 0, 10).matches({})

    def test_range_is_inclusive(self):
        r = Range("salary", 100000, 200000)
        assert r.matches({"salary": 100000})
        assert r.matches({"salary": 200000})
        assert not r.matches({"salary": 200001})

    def test_all_of_drops_match_all(self):
        assert all_of(MatchAll(), Equals("createdBy", "bob")) == Equals("createdBy", "bob")
        assert all_of(MatchAll()) == MatchAll()


# ── Builder ─────────────────────────────────────────────────────────────

class TestBuildFilter:
    def test_more_than(self):
        plan = plan_query("Who earns more than 90000?", ADMIN)
        assert plan.filter == Compare("salary", "gt", 90000)
        rows = apply_plan(plan, [{"id": "1", "salary": 100000}])
        assert _ids(rows) == ["1"]

    def test_more_than_millions(self):
        plan = plan_query("who earns more than 1.5m", ADMIN)
        rows = apply_plan(plan, [{"id": "1", "salary": 120000}, {"id": "2", "salary": 2000000}])
        assert _ids(rows) == ["2"]

    def test_at_least_includes_boundary(self):
        plan = plan_query("who earns at least 95000", ADMIN)
        assert plan.filter == Compare("salary", "gte", 95000)
        assert plan.superlative is None
        assert _ids(apply_plan(plan, _records())) == ["1", "2", "4"]

    def test_between_inclusive(self):
        plan = plan_query("who earns between 100000 and 200000?", ADMIN)
        assert plan.filter == Range("salary", 100000, 200000)
        rows = apply_plan(plan, _records())
        assert _ids(rows) == ["1", "4"]
        assert all(100000 <= r["salary"] <= 200000 for r in rows)

    def test_broad_multi_token_is_and_of_ors(self):
        plan = plan_query("John Engineering", ADMIN)
        john = AnyOf((Contains("name", "john"), Contains("department", "john"), Contains("position", "john")))
        eng = AnyOf((Contains("name", "engineering"), Contains("department", "engineering"),
                     Contains("position", "engineering")))
        assert plan.filter == AllOf((john, eng))
        assert _ids(apply_plan(plan, _records())) == ["2"]

    def test_scope_is_first_clause_for_non_admin(self):
        plan = plan_query("John Engineering", BOB)
        assert isinstance(plan.filter, AllOf)
        assert plan.filter.clauses[0] == Equals("createdBy", "bob")

    def test_scope_applies_to_every_result(self):
        plan = plan_query("who earns more than 50000", BOB)
        rows = apply_plan(plan, _records())
        assert _ids(rows) == ["2", "4"]
        assert all(r["createdBy"] == "bob" for r in rows)

    def test_admin_has_no_scope(self):
        plan = plan_query("who is in the engineering department", ADMIN)
        assert plan.filter == Contains("department", "engineering")

    def test_attribute_and_comparison(self):
        plan = plan_query("who earns less than 65000 and works in marketing", ADMIN)
        assert _ids(apply_plan(plan, _records())) == ["5"]

    def test_zero_token_fallback_matches_whole_text(self):
        plan = plan_query("who is he", ADMIN)
        assert plan.filter == AnyOf((Contains("name", "who is he"), Contains("department", "who is he"),
                                     Contains("position", "who is he")))
        assert apply_plan(plan, _records()) == []


# ── Superlatives ────────────────────────────────────────────────────────

class TestSuperlativePlan:
    def test_plan_shape(self):
        plan = plan_query("whose salary is the highest?", ADMIN)
        assert plan.sort == (("salary", True), ("id", False))
        assert plan.limit == 1
        assert plan.superlative == "highest"

    def test_highest(self):
        rows = apply_plan(plan_query("whose salary is the highest?", ADMIN), _records())
        assert _ids(rows) == ["4"]

    def test_lowest_within_scope(self):
        rows = apply_plan(plan_query("who earns the least?", BOB), _records())
        assert _ids(rows) == ["2"]

    def test_ties_broken_by_ascending_id(self):
        records = [
            {"id": "10", "name": "B", "salary": 500},
            {"id": "3", "name": "A", "salary": 500},
            {"id": "7", "name": "C", "salary": 100},
        ]
        rows = apply_plan(plan_query("who earns the most", ADMIN), records)
        assert _ids(rows) == ["3"]

    def test_missing_salary_sorts_last(self):
        records = [{"id": "1", "salary": None}, {"id": "2", "salary": 10}]
        assert _ids(apply_plan(plan_query("lowest salary", ADMIN), records)) == ["2"]
        assert _ids(apply_plan(plan_query("highest salary", ADMIN), records)) == ["2"]


# ── SQL compilation ─────────────────────────────────────────────────────

class TestToClause:
    def test_contains_compiles(self, seeded_store):
        rows = seeded_store.fetch_snapshot(Contains("name", "JOHN"))
        assert _ids(rows) == ["2", "5"]

    def test_range_compiles_inclusive(self, seeded_store):
        rows = seeded_store.fetch_snapshot(Range("salary", 70000, 120000))
        assert _ids(rows) == ["1", "2", "3"]

    def test_combinators_compile(self, seeded_store):
        scope = AllOf((Equals("createdBy", "alice"), AnyOf((Compare("salary", "gt", 100000),
                                                            Contains("department", "market")))))
        assert _ids(seeded_store.fetch_snapshot(scope)) == ["1", "5"]

    def test_like_wildcards_are_literal(self, seeded_store):
        assert seeded_store.fetch_snapshot(Contains("name", "%")) == []
