"""
Dynamic field schema engine.

``compile_fields`` turns an ordered sequence of custom field
definitions into a ``CompiledSchema``: one validator and one default
value per field, plus the metadata a form needs to render it.
``validate_responses`` runs every validator over an attendee's raw
input and returns either the fully typed responses or every error at
once.

Both functions are pure.  A compiled schema holds a snapshot of the
definitions it was built from and is never patched; when the field
list changes the caller compiles again.  The engine does not log and
does not recover from errors, it only reports them.

Validation rules per field type:

========  ===================================================  =========
type      rule                                                 default
========  ===================================================  =========
text      string; when required, non‑blank after trimming      ``""``
number    base‑10 integer parsed from raw text; when           ``None``
          required, a number must be present
select    string; when required, one of ``options``            ``""``
checkbox  boolean; ``required`` is not enforced                ``False``
========  ===================================================  =========
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..core.errors import ResponseValidationError, SchemaError
from ..schemas.field import (
    CheckboxField,
    FieldError,
    FieldType,
    NumberField,
    RenderField,
    SelectField,
    TextField,
    field_definition_adapter,
)


_INT_PREFIX = re.compile(r"\s*([+-]?)0*([0-9]+)")

# Larger magnitudes are infinite as double precision floats.
_MAX_DIGITS = 309


def _is_finite(value: int) -> bool:
    try:
        float(value)
    except OverflowError:
        return False
    return True


def parse_int(raw: Any) -> Optional[int]:
    """Parse ``raw`` the way a browser parses numeric form input.

    Strings are read as base‑10 integers: leading whitespace and a sign
    are allowed and parsing stops at the first character that is not a
    digit, so ``" 42px"`` gives ``42`` and ``"3.7"`` gives ``3``.  A
    string without leading digits is not a number, and neither is a
    value too large to be a finite float.  Finite floats are truncated
    and booleans are rejected.
    Returns ``None`` when no number can be read.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if _is_finite(raw) else None
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    if isinstance(raw, str):
        match = _INT_PREFIX.match(raw)
        if match and len(match.group(2)) <= _MAX_DIGITS:
            value = int(match.group(1) + match.group(2))
            return value if _is_finite(value) else None
    return None


def _validate_text(definition: TextField, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{definition.name} must be text")
    if definition.required and not value.strip():
        raise ValueError(f"{definition.name} is required")
    return value


def _validate_number(definition: NumberField, value: Any) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        if definition.required:
            raise ValueError(f"{definition.name} is required")
        return None
    parsed = parse_int(value)
    if parsed is None:
        raise ValueError(f"{definition.name} must be a number")
    return parsed


def _validate_select(definition: SelectField, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{definition.name} must be one of the listed options")
    if value == "" and not definition.required:
        return value
    if value not in definition.options:
        raise ValueError(f"must select one of {', '.join(definition.options)}")
    return value


def _validate_checkbox(definition: CheckboxField, value: Any) -> bool:
    # ``required`` is not enforced for checkboxes.
    if not isinstance(value, bool):
        raise ValueError(f"{definition.name} must be true or false")
    return value


# One entry per variant of ``FieldDefinition``.  ``compile_fields``
# refuses any definition whose class is missing here.
_RULES: Dict[type, Tuple[Callable[[Any, Any], Any], Any]] = {
    TextField: (_validate_text, ""),
    NumberField: (_validate_number, None),
    SelectField: (_validate_select, ""),
    CheckboxField: (_validate_checkbox, False),
}


@dataclass(frozen=True)
class CompiledField:
    """Validator, default and definition snapshot for one field."""

    definition: Any
    validator: Callable[[Any, Any], Any]
    default: Any

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def type(self) -> FieldType:
        return FieldType(self.definition.type)

    @property
    def required(self) -> bool:
        """Whether the field is enforced as required."""
        return self.definition.required and self.type != FieldType.CHECKBOX

    @property
    def options(self) -> Optional[List[str]]:
        if isinstance(self.definition, SelectField):
            return list(self.definition.options)
        return None

    def validate(self, value: Any) -> Any:
        """Return the typed value or raise ``ValueError`` with a reason."""
        if value is None:
            value = self.default
        return self.validator(self.definition, value)

    def render(self) -> RenderField:
        return RenderField(
            id=self.id,
            name=self.definition.name,
            type=self.type,
            required=self.required,
            options=self.options,
            default=self.default,
        )


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of ``validate_responses``.

    Exactly one of ``values`` and ``errors`` is populated: a successful
    result maps every field id of the schema to its typed value, a
    failed one lists every ``FieldError`` in field definition order.
    """

    values: Dict[str, Any]
    errors: Tuple[FieldError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> Dict[str, Any]:
        """Return ``values`` or raise ``ResponseValidationError``."""
        if self.errors:
            raise ResponseValidationError(self.errors)
        return self.values


@dataclass(frozen=True)
class CompiledSchema:
    """Validators and defaults for one snapshot of a field sequence."""

    fields: Tuple[CompiledField, ...]

    def __iter__(self) -> Iterator[CompiledField]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, field_id: object) -> bool:
        return any(f.id == field_id for f in self.fields)

    @property
    def field_ids(self) -> List[str]:
        return [f.id for f in self.fields]

    def get(self, field_id: str) -> Optional[CompiledField]:
        for compiled in self.fields:
            if compiled.id == field_id:
                return compiled
        return None

    def defaults(self) -> Dict[str, Any]:
        """Initial form values keyed by field id."""
        return {f.id: f.default for f in self.fields}

    def render(self) -> List[RenderField]:
        return [f.render() for f in self.fields]

    def validate(self, responses: Optional[Mapping[str, Any]]) -> ValidationResult:
        return validate_responses(self, responses)


def _coerce_definition(item: Any):
    if isinstance(item, Mapping):
        return field_definition_adapter.validate_python(dict(item))
    return item


def compile_fields(fields: Iterable[Any]) -> CompiledSchema:
    """Build a ``CompiledSchema`` from an ordered field sequence.

    ``fields`` may contain ``FieldDefinition`` instances or plain
    mappings in the same shape.  All problems are gathered before
    raising so a single ``SchemaError`` describes every malformed
    definition: select fields without options, duplicate ids, and
    entries that are not field definitions at all.
    """
    problems: List[str] = []
    compiled: List[CompiledField] = []
    seen: Dict[str, int] = {}

    for position, item in enumerate(fields):
        try:
            definition = _coerce_definition(item)
        except ValidationError as exc:
            problems.append(f"Field #{position + 1} is not a valid definition: {exc.errors()[0]['msg']}")
            continue
        rule = _RULES.get(type(definition))
        if rule is None:
            problems.append(f"Field #{position + 1} has unsupported type {type(definition).__name__}")
            continue

        seen[definition.id] = seen.get(definition.id, 0) + 1
        if seen[definition.id] == 2:
            problems.append(f"Duplicate field id '{definition.id}'")

        if isinstance(definition, SelectField) and not definition.options:
            problems.append(f"Select field '{definition.name}' ({definition.id}) has no options")

        validator, default = rule
        compiled.append(CompiledField(definition=definition, validator=validator, default=default))

    if problems:
        raise SchemaError(problems)
    return CompiledSchema(fields=tuple(compiled))


def validate_responses(schema: CompiledSchema, responses: Optional[Mapping[str, Any]]) -> ValidationResult:
    """Validate raw attendee input against ``schema``.

    Every field is checked independently and all failures are
    returned.  A field missing from ``responses`` (or given as
    ``None``) is validated as its default value.  Keys that do not
    belong to the schema are ignored.  Neither argument is modified.
    """
    responses = responses or {}
    values: Dict[str, Any] = {}
    errors: List[FieldError] = []
    for compiled in schema.fields:
        try:
            values[compiled.id] = compiled.validate(responses.get(compiled.id))
        except ValueError as exc:
            errors.append(FieldError(field_id=compiled.id, message=str(exc)))
    if errors:
        return ValidationResult(values={}, errors=tuple(errors))
    return ValidationResult(values=values)
