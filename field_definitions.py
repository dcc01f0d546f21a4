"""Field (region) definitions imported from the template-mapper JSON, and the
value variant the renderer resolves for each field.

Coordinates are floats in the definition's own space (viewport pixels when the
definition carries a ``scale``, PDF points otherwise); ``page`` is 1-based.
"""

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator


class DefinitionError(ValueError):
    """Raised when a definition file is not valid JSON or has the wrong shape."""


class FieldKind(str, Enum):
    TEXT = "text"
    CHECKBOX = "checkbox"


class VerticalAlign(str, Enum):
    TOP = "top"
    MIDDLE = "middle"


_CHECKBOX_TYPES = {"checkbox", "boolean"}


class FieldDefinition(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = None
    type: str | None = None
    description: str | None = None
    x: float | None = None
    y: float | None = None
    width: float | None = None
    height: float | None = None
    page: int | None = None
    vertical_align: str | None = Field(default=None, alias="verticalAlign")

    @field_validator("page", mode="before")
    @classmethod
    def truncate_page(cls, value: Any) -> Any:
        # Fractional pages truncate; anything unreadable leaves the field unplaced.
        if value is None or isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            try:
                value = float(value)
            except ValueError:
                return None
        if isinstance(value, float) and math.isfinite(value):
            return int(value)
        return None

    @property
    def kind(self) -> FieldKind:
        if self.type and self.type.strip().lower() in _CHECKBOX_TYPES:
            return FieldKind.CHECKBOX
        return FieldKind.TEXT

    @property
    def alignment(self) -> VerticalAlign:
        if self.vertical_align and self.vertical_align.strip().lower() == VerticalAlign.TOP.value:
            return VerticalAlign.TOP
        return VerticalAlign.MIDDLE

    @property
    def is_renderable(self) -> bool:
        return (
            bool(self.name)
            and self.x is not None
            and self.y is not None
            and self.page is not None
            and self.page >= 1
        )


class FieldsDefinition(BaseModel):
    """Root of a definition file: the field list plus optional overlay settings."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    fields: list[FieldDefinition] | None = None
    scale: float | None = None
    checkbox_checked_image: str | None = Field(
        default=None,
        validation_alias=AliasChoices("checkboxCheckedImage", "checkboxSymbol", "checkbox_checked_image"),
    )
    font_size: float | None = Field(default=None, alias="fontSize")
    font_color: str | None = Field(default=None, alias="fontColor")
    padding_x: float | None = Field(default=None, alias="paddingX")
    padding_y: float | None = Field(default=None, alias="paddingY")
    font_name: str | None = Field(default=None, alias="fontName")

    @property
    def field_count(self) -> int:
        return len(self.fields) if self.fields else 0


def parse_definition(raw: str | bytes) -> FieldsDefinition:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8-sig")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DefinitionError(f"Invalid definition JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise DefinitionError("Invalid definition JSON: root must be an object.")
    try:
        return FieldsDefinition.model_validate(payload)
    except ValidationError as exc:
        raise DefinitionError(f"Invalid definition JSON: {exc}") from exc


class ValueKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ABSENT = "absent"


@dataclass(frozen=True)
class FieldValue:
    kind: ValueKind
    raw: Any = None

    @classmethod
    def of(cls, raw: Any) -> "FieldValue":
        # bool is a subclass of int, so it must be checked first.
        if raw is None:
            return ABSENT
        if isinstance(raw, bool):
            return cls(ValueKind.BOOLEAN, raw)
        if isinstance(raw, (int, float)):
            return cls(ValueKind.NUMBER, raw)
        return cls(ValueKind.TEXT, str(raw))

    @property
    def is_checked(self) -> bool:
        return self.kind is ValueKind.BOOLEAN and self.raw is True

    def as_text(self) -> str:
        if self.kind is ValueKind.ABSENT:
            return ""
        if self.kind is ValueKind.BOOLEAN:
            return "true" if self.raw else "false"
        return str(self.raw)


ABSENT = FieldValue(ValueKind.ABSENT)


def lookup_value(values: dict[str, Any] | None, name: str | None) -> FieldValue:
    if not values or not name:
        return ABSENT
    return FieldValue.of(values.get(name))
