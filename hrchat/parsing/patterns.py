"""
Pattern matcher: extract filter signals from a natural-language HR query.

Handles requests like:
  "who earns more than 90000?"
  "who earns between 100k and 200k"
  "whose salary is the highest?"
  "who is in the Engineering department?"
  "John Engineering"

Signals are produced by an ordered table of rules (RULES) run by a small
interpreter (match_signals). Each rule has a guard, a tuple of alternative
regexes (first match wins) and an effect that writes into Signals. Precedence
is the order of the table.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple


#  Amounts

_AMOUNT = r"\$?\s?(\d[\d,]*(?:\.\d+)?(?:\s?[km])?)\b"
# Currency sign or k/m suffix required; tells "50k-80k" apart from "2020-2021"
_MARKED_AMOUNT = r"(\$\s?\d[\d,]*(?:\.\d+)?(?:\s?[km])?|\d[\d,]*(?:\.\d+)?\s?[km])\b"
_AMOUNT_RE = re.compile(r"^\$?\s?(\d[\d,]*(?:\.\d+)?)\s?(k|m)?$", re.IGNORECASE)


def parse_amount(text: str) -> Optional[float]:
    """Parse '90000', '90,000', '$90k' or '1.5m' into a number."""
    m = _AMOUNT_RE.match((text or "").strip())
    if not m:
        return None
    try:
        value = float(m.group(1).replace(",", ""))
    except ValueError:
        return None
    suffix = (m.group(2) or "").lower()
    if suffix == "k":
        value *= 1_000
    elif suffix == "m":
        value *= 1_000_000
    return value


#  Broad-search vocabulary

STOPWORDS = frozenset({
    "does", "belongs", "belong", "which", "what", "how", "much", "many",
    "is", "are", "the", "earning", "earns", "earn", "salary", "salaries",
    "about", "who", "whom", "whose", "where", "works", "work", "working",
    "department", "dept", "position", "role", "title", "employee",
    "employees", "staff", "show", "list", "find", "tell", "give", "all",
    "any", "and", "with", "from", "that", "this", "there", "have", "has",
    "for", "please", "can", "you", "our", "everyone", "anyone", "someone",
})

_TOKEN_PUNCTUATION = "?!.,;:\"'()"


def tokenize(text: str) -> List[str]:
    """Whitespace tokens with surrounding punctuation removed; short and stop words dropped."""
    terms: List[str] = []
    for raw in text.split():
        token = raw.strip(_TOKEN_PUNCTUATION)
        if len(token) <= 2 or token in STOPWORDS:
            continue
        terms.append(token)
    return terms


#  Signals and rules

@dataclass
class Signals:
    """Everything the rule table extracted from one query."""
    superlative: Optional[str] = None                   # "highest" | "lowest"
    salary_range: Optional[Tuple[float, float]] = None  # inclusive, normalized min/max
    comparisons: List[Tuple[str, float]] = field(default_factory=list)  # ("gt"|"lt"|"gte"|"lte", amount)
    attributes: Dict[str, str] = field(default_factory=dict)            # field -> substring
    broad_terms: List[str] = field(default_factory=list)
    broad_text: Optional[str] = None
    fired: List[str] = field(default_factory=list)

    @property
    def narrowed(self) -> bool:
        """True if any specific (non-fallback) signal was found."""
        return bool(self.superlative or self.salary_range or self.comparisons or self.attributes)


def _always(signals: Signals) -> bool:
    return True


@dataclass(frozen=True)
class Rule:
    """One row of the rule table."""
    name: str
    patterns: Tuple[re.Pattern, ...]
    effect: Callable[[Signals, re.Match], bool]
    applies: Callable[[Signals], bool] = _always


def match_signals(text: str, rules: Optional[Tuple[Rule, ...]] = None) -> Signals:
    """
    Run the rule table over lower-cased, trimmed text.

    For every rule whose guard passes, alternatives are tried in order and the
    first one whose effect accepts the match wins; the rule's name is then
    recorded in Signals.fired.
    """
    signals = Signals()
    for rule in rules if rules is not None else RULES:
        if not rule.applies(signals):
            continue
        for pattern in rule.patterns:
            m = pattern.search(text)
            if m and rule.effect(signals, m):
                signals.fired.append(rule.name)
                break
    return signals


#  Effects

_HIGH_WORDS = {"highest", "most", "max", "maximum", "richest"}


def _set_superlative(signals: Signals, m: re.Match) -> bool:
    signals.superlative = "highest" if m.group(1) in _HIGH_WORDS else "lowest"
    return True


def _set_range(signals: Signals, m: re.Match) -> bool:
    a, b = parse_amount(m.group(1)), parse_amount(m.group(2))
    if a is None or b is None:
        return False
    signals.salary_range = (min(a, b), max(a, b))
    return True


def _comparison(op: str) -> Callable[[Signals, re.Match], bool]:
    def effect(signals: Signals, m: re.Match) -> bool:
        amount = parse_amount(m.group(1))
        if amount is None:
            return False
        signals.comparisons.append((op, amount))
        return True
    return effect


def _attribute(field_name: str) -> Callable[[Signals, re.Match], bool]:
    def effect(signals: Signals, m: re.Match) -> bool:
        value = m.group(1).strip(_TOKEN_PUNCTUATION + " ")
        # "department does" / "named everyone" are not real values
        if not value or all(word in STOPWORDS for word in value.split()):
            return False
        signals.attributes[field_name] = value
        return True
    return effect


def _set_broad(signals: Signals, m: re.Match) -> bool:
    text = m.group(0).strip()
    signals.broad_terms = tokenize(text)
    if not signals.broad_terms:
        signals.broad_text = text
    return True


def _no_range(signals: Signals) -> bool:
    return signals.salary_range is None


def _not_narrowed(signals: Signals) -> bool:
    return not signals.narrowed


#  Rule table

_SALARY_REFERENCE = r"^(?=.*\b(?:salar(?:y|ies)|earn\w*|paid|pay|wages?|income)\b)"

RULES: Tuple[Rule, ...] = (
    Rule(
        name="superlative",
        patterns=(
            # "at most 90000" / "at least 50k" are bounds, handled below
            re.compile(_SALARY_REFERENCE + r".*(?<!\bat )\b(highest|most|max|maximum|richest)\b"),
            re.compile(_SALARY_REFERENCE + r".*(?<!\bat )\b(lowest|least|min|minimum|poorest)\b"),
        ),
        effect=_set_superlative,
    ),
    Rule(
        name="range",
        patterns=(
            # "between 100000 and 200000", "between $50k and $80k"
            re.compile(r"\bbetween\s+" + _AMOUNT + r"\s+and\s+" + _AMOUNT),
            # "50000 to 80000", "50000 - 80000"
            re.compile(_AMOUNT + r"\s+(?:to|-)\s+" + _AMOUNT),
            # "50k-80k", "$50000-$80000"
            re.compile(_MARKED_AMOUNT + r"\s*-\s*" + _MARKED_AMOUNT),
        ),
        effect=_set_range,
    ),
    Rule(
        name="more_than",
        patterns=(
            re.compile(r"\b(?:more|greater|higher)\s+than\s+" + _AMOUNT),
            re.compile(r"\b(?:above|over|exceeding)\s+" + _AMOUNT),
        ),
        effect=_comparison("gt"),
        applies=_no_range,
    ),
    Rule(
        name="less_than",
        patterns=(
            re.compile(r"\b(?:less|lower|fewer)\s+than\s+" + _AMOUNT),
            re.compile(r"\b(?:below|under)\s+" + _AMOUNT),
        ),
        effect=_comparison("lt"),
        applies=_no_range,
    ),
    Rule(
        name="at_least",
        patterns=(
            re.compile(r"\bat\s+least\s+" + _AMOUNT),
        ),
        effect=_comparison("gte"),
        applies=_no_range,
    ),
    Rule(
        name="at_most",
        patterns=(
            re.compile(r"\bat\s+most\s+" + _AMOUNT),
        ),
        effect=_comparison("lte"),
        applies=_no_range,
    ),
    Rule(
        name="department",
        patterns=(
            # "in the engineering department", "in human resources team"
            re.compile(
                r"\bin\s+(?:the\s+)?([a-z][a-z&\-]*(?:\s+[a-z][a-z&\-]*)?)"
                r"\s+(?:department|dept|team|division)\b"
            ),
            # "in charge of the finance department"
            re.compile(r"\bthe\s+([a-z][a-z&\-]*)\s+(?:department|dept|team|division)\b"),
            # "department of finance", "dept is hr"
            re.compile(r"\b(?:department|dept)\s+(?:of|is|named|=)\s*([a-z][a-z&\-]*)"),
            # "who works in marketing"
            re.compile(r"\bworks?\s+in\s+(?:the\s+)?([a-z][a-z&\-]*)"),
        ),
        effect=_attribute("department"),
    ),
    Rule(
        name="name",
        patterns=(
            re.compile(r"\b(?:named|called)\s+([a-z][a-z'\-]*)"),
            # "john's salary", "what is mary's position"
            re.compile(r"\b([a-z][a-z\-]*)'s\s+(?:salary|pay|position|role|title|job|department|dept)\b"),
            # "how much does john earn", "which department does john belong to"
            re.compile(r"\bdoes\s+([a-z][a-z\-]*)\s+(?:earn|make|get|work|belong)"),
            re.compile(r"\b(?:about|details\s+(?:of|on|for))\s+([a-z][a-z'\-]*)\s*\??$"),
        ),
        effect=_attribute("name"),
    ),
    Rule(
        name="position",
        patterns=(
            # "who works as a designer", "employed as an accountant in finance"
            re.compile(
                r"\b(?:works?|working|employed|hired)\s+as\s+(?:an?\s+|the\s+)?"
                r"([a-z][a-z\- ]*?)(?:\s+(?:in|at|with|who|and|earning)\b|\s*\?|$)"
            ),
            # "position is manager", "title of analyst"
            re.compile(
                r"\b(?:position|role|title|job)\s+(?:is|of|=)\s*"
                r"([a-z][a-z\- ]*?)(?:\s+(?:in|at|with|and)\b|\s*\?|$)"
            ),
        ),
        effect=_attribute("position"),
    ),
    Rule(
        name="broad",
        patterns=(re.compile(r"^.+$", re.DOTALL),),
        effect=_set_broad,
        applies=_not_narrowed,
    ),
)
