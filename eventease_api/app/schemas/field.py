"""
Pydantic models for custom RSVP fields.

A field definition is a closed tagged variant over four types.  Each
variant carries only its own payload (only ``SelectField`` has
``options``), and ``FieldDefinition`` is the discriminated union used
wherever a definition is parsed from user input.  Definitions are
frozen: the draft store replaces a definition when an author edits it
rather than mutating it, so a compiled schema never sees an edit made
after it was built.
"""

from enum import Enum
from typing import Annotated, Any, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    CHECKBOX = "checkbox"


def parse_options(value: Union[str, Iterable[str], None]) -> List[str]:
    """Normalise select options.

    Accepts either a list of strings or the comma separated form the
    event editor submits (``"Small, Medium, Large"``).  Entries are
    stripped, blanks dropped and duplicates removed keeping the first
    occurrence.
    """
    if value is None:
        return []
    if isinstance(value, str):
        raw = value.split(",")
    else:
        raw = list(value)
    options: List[str] = []
    for item in raw:
        if not isinstance(item, str):
            raise ValueError("Each option must be a string")
        item = item.strip()
        if item and item not in options:
            options.append(item)
    return options


def _clean_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Field name must not be empty")
    return value


class FieldBase(BaseModel):
    id: str = Field(..., min_length=1, examples=["field_1"])
    name: str = Field(..., examples=["Dietary Restrictions"])
    required: bool = Field(False, examples=[False])

    model_config = {"frozen": True}

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_name(v)


class TextField(FieldBase):
    type: Literal["text"] = "text"


class NumberField(FieldBase):
    type: Literal["number"] = "number"


class SelectField(FieldBase):
    type: Literal["select"] = "select"
    # May be empty while an author is still editing a draft; the schema
    # engine refuses to compile a select field without options.
    options: List[str] = Field(default_factory=list, examples=[["Small", "Medium", "Large"]])

    @field_validator("options", mode="before")
    @classmethod
    def validate_options(cls, v):
        return parse_options(v)


class CheckboxField(FieldBase):
    type: Literal["checkbox"] = "checkbox"


FieldDefinition = Annotated[
    Union[TextField, NumberField, SelectField, CheckboxField],
    Field(discriminator="type"),
]

field_definition_adapter = TypeAdapter(FieldDefinition)


class FieldCreate(BaseModel):
    """Schema for adding a custom field to a draft event.

    The identifier is assigned by the server.  ``options`` is accepted
    only for ``select`` fields, either as a list or as a comma
    separated string.
    """

    name: str = Field(..., examples=["T-Shirt Size"])
    type: FieldType = Field(FieldType.TEXT, examples=["select"])
    required: bool = False
    options: Optional[List[str]] = Field(None, examples=[["Small", "Medium", "Large"]])

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("options", mode="before")
    @classmethod
    def validate_options(cls, v):
        if v is None:
            return None
        return parse_options(v)

    @model_validator(mode="after")
    def options_only_for_select(self):
        if self.type != FieldType.SELECT and self.options:
            raise ValueError("Options are only allowed for select fields")
        return self

    def build(self, field_id: str):
        """Create the typed definition for this payload."""
        data = {"id": field_id, "name": self.name, "type": self.type.value, "required": self.required}
        if self.type == FieldType.SELECT:
            data["options"] = self.options or []
        return field_definition_adapter.validate_python(data)


class FieldUpdate(BaseModel):
    """Schema for editing a custom field.

    The field type is fixed at creation and cannot be changed here;
    remove the field and add a new one instead.
    """

    name: Optional[str] = None
    required: Optional[bool] = None
    options: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return _clean_name(v)

    @field_validator("options", mode="before")
    @classmethod
    def validate_options(cls, v):
        if v is None:
            return None
        return parse_options(v)


class FieldError(BaseModel):
    """One invalid attendee response."""

    field_id: str
    message: str

    model_config = {"frozen": True}


class FieldResponse(BaseModel):
    """One attendee's answer to one custom field."""

    field_id: str
    value: Union[bool, int, str, None] = None


class RenderField(BaseModel):
    """Metadata a form needs to pick an input control for a field."""

    id: str
    name: str
    type: FieldType
    required: bool
    options: Optional[List[str]] = None
    default: Any = None
