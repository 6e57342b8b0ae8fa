"""
Intent models: the structured meaning of a chat query.

Every resolver (regex rules or LLM classifier) produces one of the four
variants below. Classifier JSON is validated into this tagged union right
after parsing, so nothing downstream ever touches the raw LLM payload.
"""
from dataclasses import dataclass
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from hrchat.parsing.patterns import parse_amount

ROLE_ADMIN = "admin"
ROLE_USER = "user"

# Fields a chat request is allowed to write. Ownership (createdBy), ids and
# timestamps are always set by the dispatcher, never by the classifier.
EDITABLE_FIELDS = ("name", "position", "department", "salary")

DEFAULT_QUERY_MESSAGE = "Here is the data."


@dataclass(frozen=True)
class Requester:
    """Authenticated caller, as established by the external auth layer."""
    username: str
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def _coerce_id(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    return text or None


class QueryIntent(BaseModel):
    """Read-only answer; matching_ids select rows from the authorized snapshot."""
    intent: Literal["query"] = "query"
    message: str = DEFAULT_QUERY_MESSAGE
    matching_ids: List[str] = Field(default_factory=list)

    @field_validator("message", mode="before")
    @classmethod
    def _message_text(cls, value: Any) -> str:
        if value is None or value == "":
            return DEFAULT_QUERY_MESSAGE
        return value if isinstance(value, str) else str(value)

    @field_validator("matching_ids", mode="before")
    @classmethod
    def _id_list(cls, value: Any) -> List[str]:
        # Anything but a list means "no filtering ids"
        if not isinstance(value, list):
            return []
        return [i for i in (_coerce_id(v) for v in value) if i]


class CreateIntent(BaseModel):
    intent: Literal["create"] = "create"
    data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def _mapping(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}


class UpdateIntent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    intent: Literal["update"] = "update"
    target_id: Optional[str] = None
    target_name: Optional[str] = None
    fields: Dict[str, Any] = Field(default_factory=dict, alias="update_fields")

    @field_validator("target_id", mode="before")
    @classmethod
    def _target(cls, value: Any) -> Optional[str]:
        return _coerce_id(value)

    @field_validator("target_name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("fields", mode="before")
    @classmethod
    def _mapping(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}


class DeleteIntent(BaseModel):
    intent: Literal["delete"] = "delete"
    target_id: Optional[str] = None
    target_name: Optional[str] = None

    @field_validator("target_id", mode="before")
    @classmethod
    def _target(cls, value: Any) -> Optional[str]:
        return _coerce_id(value)

    @field_validator("target_name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None


Intent = Annotated[
    Union[QueryIntent, CreateIntent, UpdateIntent, DeleteIntent],
    Field(discriminator="intent"),
]

INTENT_ADAPTER: TypeAdapter = TypeAdapter(Intent)


def sanitize_employee_fields(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Keep only writable employee fields and normalize their values.

    Strings are trimmed (empty ones dropped); salary is parsed from forms like
    "80000", "80,000", "$80k" or a number, and dropped when unparseable.
    """
    clean: Dict[str, Any] = {}
    for key in EDITABLE_FIELDS:
        if key not in raw or raw[key] is None:
            continue
        value = raw[key]
        if key == "salary":
            amount = value if isinstance(value, (int, float)) and not isinstance(value, bool) else parse_amount(str(value))
            if amount is not None:
                clean[key] = float(amount)
            continue
        text = str(value).strip()
        if text:
            clean[key] = text
    return clean
