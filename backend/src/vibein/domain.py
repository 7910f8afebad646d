"""Shared base for models persisted as documents."""

from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from vibein.storage.documents import Document

Clock = Callable[[], datetime]

M = TypeVar("M", bound="DocumentModel")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DocumentModel(BaseModel):
    """Pydantic model stored with camelCase keys; ``id`` lives outside the data."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    id: str | None = None

    @field_validator("*", mode="after")
    @classmethod
    def _normalize_datetimes(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return ensure_utc(value)
        return value

    def to_data(self) -> dict[str, Any]:
        """Serialize to document data (JSON types, camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})

    @classmethod
    def from_document(cls: type[M], doc: Document) -> M:
        return cls.model_validate({**doc.data, "id": doc.id})
