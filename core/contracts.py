# =============================================================================
# core/contracts.py  —  Schema Contracts (what goes in, what comes out)
# =============================================================================
#
# An InputContract is an ordered list of Fields.  The Fields compile into one
# JSON Schema, and that schema does two jobs:
#   1. to_json_schema()   → the schema advertised to MCP clients
#   2. validate(raw)      → a Draft 2020-12 validator checks the raw
#                           arguments against that same schema, then
#                           defaults are filled in
#
# POLICY (applies to every tool):
#   - unknown fields are rejected (additionalProperties: false)
#   - out-of-range numbers are rejected, never clamped
#   - every problem is collected and reported in one ValidationError
#
# An OutputContract compiles to a schema over InvocationResult.to_dict():
# which content kinds are allowed and how many.  A handler that breaks its
# output contract raises ContractViolation.
# =============================================================================

import base64
import binascii
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from jsonschema import Draft202012Validator, validators

from core.errors import ContractViolation, ValidationError
from core.models import ImageContent, InvocationResult, TextContent


class FieldKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ENUM = "enum"


_MISSING = object()


# --- Validator -----------------------------------------------------------------
# Draft 2020-12 with one change: NaN and ±Infinity are not numbers.  Large
# integers stay numbers (math.isfinite would overflow on them).

def _is_finite_number(checker, instance) -> bool:
    if not Draft202012Validator.TYPE_CHECKER.is_type(instance, "number"):
        return False
    return isinstance(instance, int) or math.isfinite(instance)


ContractValidator = validators.extend(
    Draft202012Validator,
    type_checker=Draft202012Validator.TYPE_CHECKER.redefine("number", _is_finite_number),
)


@dataclass(frozen=True)
class Field:
    """One named argument.  Build these with the helpers below."""

    name: str
    kind: FieldKind
    description: str = ""
    required: bool = True
    default: Any = _MISSING
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    choices: tuple = ()

    @property
    def has_default(self) -> bool:
        return self.default is not _MISSING

    def coerce(self, value: Any) -> Any:
        """Integer fields accept 5.0 (JSON has one number type); hand over 5."""
        if self.kind is FieldKind.INTEGER and isinstance(value, float):
            return int(value)
        return value

    def to_json_schema(self) -> dict:
        if self.kind is FieldKind.ENUM:
            schema: dict = {"type": "string", "enum": list(self.choices)}
        else:
            schema = {"type": self.kind.value}
        if self.description:
            schema["description"] = self.description
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        if self.has_default:
            schema["default"] = self.default
        return schema


# --- Field helpers -----------------------------------------------------------
# A default implies optional.  `required=False` without a default means the
# handler receives None when the caller omits the field.

def string(name: str, description: str = "", default: Any = _MISSING,
           required: bool = True) -> Field:
    return Field(name, FieldKind.STRING, description,
                 required=required and default is _MISSING, default=default)


def number(name: str, description: str = "", default: Any = _MISSING,
           minimum: Optional[float] = None, maximum: Optional[float] = None,
           required: bool = True) -> Field:
    return Field(name, FieldKind.NUMBER, description,
                 required=required and default is _MISSING, default=default,
                 minimum=minimum, maximum=maximum)


def integer(name: str, description: str = "", default: Any = _MISSING,
            minimum: Optional[int] = None, maximum: Optional[int] = None,
            required: bool = True) -> Field:
    return Field(name, FieldKind.INTEGER, description,
                 required=required and default is _MISSING, default=default,
                 minimum=minimum, maximum=maximum)


def boolean(name: str, description: str = "", default: Any = _MISSING,
            required: bool = True) -> Field:
    return Field(name, FieldKind.BOOLEAN, description,
                 required=required and default is _MISSING, default=default)


def enum(name: str, choices, description: str = "", default: Any = _MISSING,
         required: bool = True) -> Field:
    return Field(name, FieldKind.ENUM, description,
                 required=required and default is _MISSING, default=default,
                 choices=tuple(choices))


# =============================================================================
# InputContract
# =============================================================================
@dataclass(frozen=True)
class InputContract:
    fields: tuple = ()
    _validator: Any = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate field names in contract: {names}")
        schema = self.to_json_schema()
        ContractValidator.check_schema(schema)
        validator = ContractValidator(schema)
        for f in self.fields:
            if f.has_default:
                # A bad default would only surface at call time.
                field_schema = schema["properties"][f.name]
                errors = list(ContractValidator(field_schema).iter_errors(f.default))
                if errors:
                    raise ValueError(f"default for '{f.name}' is invalid: {errors[0].message}")
        object.__setattr__(self, "_validator", validator)

    @property
    def field_names(self) -> tuple:
        return tuple(f.name for f in self.fields)

    def validate(self, raw: Any) -> dict:
        """Check raw arguments and return the typed, defaulted mapping."""
        if raw is None:
            raw = {}

        problems: dict[str, str] = {}
        for error in self._validator.iter_errors(raw):
            for name, reason in _describe(error, raw, self.field_names):
                problems.setdefault(name, reason)
        if problems:
            order = {name: i for i, name in enumerate(self.field_names)}
            ranked = sorted(problems, key=lambda name: order.get(name, len(order)))
            raise ValidationError({name: problems[name] for name in ranked})

        clean: dict[str, Any] = {}
        for f in self.fields:
            if f.name in raw:
                clean[f.name] = f.coerce(raw[f.name])
            elif f.has_default:
                clean[f.name] = f.default
            else:
                clean[f.name] = None
        return clean

    def to_json_schema(self) -> dict:
        return {
            "type": "object",
            "properties": {f.name: f.to_json_schema() for f in self.fields},
            "required": [f.name for f in self.fields if f.required],
            "additionalProperties": False,
        }


def _describe(error, raw: Any, known: tuple):
    """Turn one jsonschema error into (field, reason) pairs."""
    if error.validator == "required":
        return [(name, "required field is missing")
                for name in error.validator_value if name not in raw]
    if error.validator == "additionalProperties":
        return [(str(name), "unknown field") for name in raw if name not in known]

    name = str(error.path[0]) if error.path else "<arguments>"
    value = error.instance
    if error.validator == "type":
        expected = "object" if not error.path else error.validator_value
        if isinstance(value, float) and not math.isfinite(value):
            return [(name, "must be a finite number")]
        if expected == "integer" and isinstance(value, float):
            return [(name, "expected integer, got a fractional number")]
        return [(name, f"expected {expected}, got {_type_name(value)}")]
    if error.validator == "enum":
        allowed = ", ".join(repr(c) for c in error.validator_value)
        return [(name, f"must be one of {allowed}")]
    if error.validator == "minimum":
        return [(name, f"must be >= {_format_bound(error.validator_value)}")]
    if error.validator == "maximum":
        return [(name, f"must be <= {_format_bound(error.validator_value)}")]
    return [(name, error.message)]


# =============================================================================
# OutputContract
# =============================================================================
IMAGE_MIME_TYPES = ("image/png", "image/jpeg", "image/webp", "image/gif")

_ITEM_SCHEMAS = {
    "text": {
        "type": "object",
        "properties": {
            "type": {"const": "text"},
            "text": {"type": "string"},
        },
        "required": ["type", "text"],
        "additionalProperties": False,
    },
    "image": {
        "type": "object",
        "properties": {
            "type": {"const": "image"},
            "data": {"type": "string", "minLength": 1, "contentEncoding": "base64"},
            "mimeType": {"enum": list(IMAGE_MIME_TYPES)},
            "annotations": {"type": "object"},
        },
        "required": ["type", "data", "mimeType"],
        "additionalProperties": False,
    },
}
_ITEM_CLASSES = {"text": TextContent, "image": ImageContent}


@dataclass(frozen=True)
class OutputContract:
    """Which content kinds a result may hold, and how many items."""

    kinds: tuple = ("text",)
    min_items: int = 1
    max_items: Optional[int] = 1
    _validator: Any = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        schema = self.to_json_schema()
        ContractValidator.check_schema(schema)
        object.__setattr__(self, "_validator", ContractValidator(schema))

    def to_json_schema(self) -> dict:
        items = [_ITEM_SCHEMAS[kind] for kind in self.kinds]
        content: dict = {
            "type": "array",
            "items": items[0] if len(items) == 1 else {"oneOf": items},
            "minItems": self.min_items,
        }
        if self.max_items is not None:
            content["maxItems"] = self.max_items
        return {
            "type": "object",
            "properties": {"content": content},
            "required": ["content"],
        }

    def validate(self, result: Any) -> InvocationResult:
        if not isinstance(result, InvocationResult):
            raise ContractViolation(
                f"handler returned {_type_name(result)}, expected InvocationResult"
            )
        if not isinstance(result.content, tuple):
            raise ContractViolation("result content must be a tuple of content items")

        for index, item in enumerate(result.content):
            kind = getattr(item, "type", None)
            if kind not in self.kinds or not isinstance(item, _ITEM_CLASSES.get(kind, ())):
                raise ContractViolation(f"content[{index}] has disallowed kind {kind!r}")
            if kind == "image" and item.annotations is not None \
                    and not isinstance(item.annotations, dict):
                raise ContractViolation(f"content[{index}]: annotations must be a mapping")

        errors = sorted(
            self._validator.iter_errors(result.to_dict()), key=lambda err: list(err.path)
        )
        if errors:
            messages = "; ".join(
                f"{'/'.join(map(str, err.path)) or '<root>'}: {err.message}" for err in errors[:5]
            )
            raise ContractViolation(f"output schema validation failed: {messages}")

        for index, item in enumerate(result.content):
            if item.type == "image":
                _check_base64(index, item.data)
        return result


TEXT_RESULT = OutputContract(kinds=("text",), min_items=1, max_items=1)
IMAGE_RESULT = OutputContract(kinds=("image",), min_items=1, max_items=1)


# --- helpers -------------------------------------------------------------------

def _check_base64(index: int, data: str) -> None:
    # contentEncoding is an annotation in 2020-12, not an assertion.
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ContractViolation(f"content[{index}]: image data is not valid base64") from exc


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _format_bound(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
