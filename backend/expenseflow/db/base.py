import uuid
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from expenseflow.core.errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def safe_utc(dt: datetime) -> datetime:
    """Ensure datetime is tz-aware (UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire (``model_dump(by_alias=True)``)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Record(CamelModel):
    """A stored entity: opaque string id plus creation/update instants."""

    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return safe_utc(value)


M = TypeVar("M", bound=BaseModel)


def validation_message(kind: type[BaseModel], exc: PydanticValidationError) -> str:
    fields = ", ".join(
        ".".join(str(part) for part in err["loc"]) or "<root>" for err in exc.errors()
    )
    return f"Invalid {kind.__name__}: {fields}"


def parse_payload(schema: type[M], payload: M | dict[str, Any]) -> M:
    """Coerce a dict (snake_case or camelCase keys) into ``schema``."""
    if isinstance(payload, schema):
        return payload
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(validation_message(schema, exc)) from exc
