"""Schema model for normalized log records.

A schema is a tree of typed fields. Leaves are primitives (string, integer,
float, boolean, timestamp); branches are arrays (one element field) and
objects (an ordered tuple of child fields). Schemas are declared statically,
validated once when the registry is built, and then used to type-check and
coerce every candidate record a parser produces.
"""

import math
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from lognorm.exceptions import SchemaError, TypeMismatch
from lognorm.logtypes.timefmt import format_timestamp, is_valid_hint, parse_timestamp

# Standard fields injected by the normalizer use this prefix
RESERVED_PREFIX = "p_"

# Indicator kind -> standard field collecting its values
INDICATOR_FIELDS = {
    "ip": "p_any_ip_addresses",
    "domain": "p_any_domain_names",
    "md5": "p_any_md5_hashes",
    "sha1": "p_any_sha1_hashes",
    "sha256": "p_any_sha256_hashes",
    "username": "p_any_usernames",
}

_COLUMN_PATTERN = re.compile(r"[^A-Za-z0-9_]")

_TRUE_STRINGS = frozenset({"true", "t", "yes", "y", "1"})
_FALSE_STRINGS = frozenset({"false", "f", "no", "n", "0"})


def column_name(name: str) -> str:
    """Storage column name for an input field name (id.orig_h -> id_orig_h)."""
    return _COLUMN_PATTERN.sub("_", name)


class FieldKind(str, Enum):
    """Closed set of field kinds."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    ARRAY = "array"
    OBJECT = "object"

    @property
    def is_primitive(self) -> bool:
        return self not in (FieldKind.ARRAY, FieldKind.OBJECT)


HIVE_TYPES = {
    FieldKind.STRING: "string",
    FieldKind.INTEGER: "bigint",
    FieldKind.FLOAT: "double",
    FieldKind.BOOLEAN: "boolean",
    FieldKind.TIMESTAMP: "timestamp",
}


@dataclass(frozen=True)
class Field:
    """A named, typed node of a schema."""

    name: str
    kind: FieldKind
    nullable: bool = True
    description: str = ""
    format: str | None = None
    fields: tuple["Field", ...] = ()
    element: "Field | None" = None
    event_time: bool = False
    indicators: tuple[str, ...] = ()

    @property
    def column(self) -> str:
        return column_name(self.name)

    @property
    def required(self) -> bool:
        return not self.nullable

    def validate(self, path: str = "") -> None:
        """Check internal consistency of this field and its children.

        Raises:
            SchemaError: on the first inconsistency found
        """
        path = path or self.name
        if not isinstance(self.kind, FieldKind):
            raise SchemaError(path, f"unknown field kind {self.kind!r}")
        if self.format is not None:
            if self.kind is not FieldKind.TIMESTAMP:
                raise SchemaError(path, "format hints apply to timestamp fields only")
            if not is_valid_hint(self.format):
                raise SchemaError(path, f"unknown timestamp format {self.format!r}")
        if self.event_time and self.kind is not FieldKind.TIMESTAMP:
            raise SchemaError(path, "event_time must be a timestamp field")
        for indicator in self.indicators:
            if indicator not in INDICATOR_FIELDS:
                raise SchemaError(path, f"unknown indicator {indicator!r}")
        if self.indicators and self.kind is not FieldKind.STRING:
            raise SchemaError(path, "indicators apply to string fields only")

        if self.kind.is_primitive:
            if self.fields or self.element is not None:
                raise SchemaError(path, f"{self.kind.value} field cannot have children")
            return

        if self.kind is FieldKind.ARRAY:
            if self.fields:
                raise SchemaError(path, "array declares child fields, use element")
            if self.element is None:
                raise SchemaError(path, "array has no element field")
            if _has_event_time(self.element):
                raise SchemaError(path, "event_time cannot be nested in an array")
            self.element.validate(f"{path}[]")
            return

        if self.element is not None:
            raise SchemaError(path, "object cannot declare an element field")
        if not self.fields:
            raise SchemaError(path, "object has no fields")
        names: set[str] = set()
        columns: set[str] = set()
        for child in self.fields:
            if not isinstance(child, Field):
                raise SchemaError(path, f"child {child!r} is not a field")
            if not child.name:
                raise SchemaError(path, "field with empty name")
            if child.name in names:
                raise SchemaError(path, f"duplicate field {child.name!r}")
            if child.column in columns:
                raise SchemaError(path, f"field {child.name!r} collides with column {child.column!r}")
            names.add(child.name)
            columns.add(child.column)
            child.validate(f"{path}.{child.name}")

    def match(self, value: Any, path: str = "", degraded: list[str] | None = None) -> Any:
        """Type-check and coerce a loosely-typed value against this field.

        Missing or mismatching values on nullable fields become None, and
        the field path is appended to ``degraded`` when given.

        Raises:
            TypeMismatch: if a required value is missing or cannot be coerced
        """
        path = path or self.name
        if value is None or (value == "" and self.kind is not FieldKind.STRING):
            if self.nullable:
                return None
            raise TypeMismatch(path, "required value is missing")
        try:
            return _MATCHERS[self.kind](self, value, path, degraded)
        except TypeMismatch:
            if not self.nullable:
                raise
            if degraded is not None:
                degraded.append(path)
            return None

    def hive_type(self) -> str:
        """Catalog column type for this field."""
        if self.kind is FieldKind.ARRAY:
            return f"array<{self.element.hive_type()}>"
        if self.kind is FieldKind.OBJECT:
            members = ",".join(f"{child.column}:{child.hive_type()}" for child in self.fields)
            return f"struct<{members}>"
        return HIVE_TYPES[self.kind]

    def describe(self) -> dict[str, Any]:
        """JSON-serializable description of this field."""
        result: dict[str, Any] = {
            "name": self.name,
            "column": self.column,
            "type": self.kind.value,
            "hive_type": self.hive_type(),
            "nullable": self.nullable,
        }
        if self.description:
            result["description"] = self.description
        if self.format:
            result["format"] = self.format
        if self.event_time:
            result["event_time"] = True
        if self.indicators:
            result["indicators"] = list(self.indicators)
        if self.kind is FieldKind.OBJECT:
            result["fields"] = [child.describe() for child in self.fields]
        elif self.kind is FieldKind.ARRAY:
            result["element"] = self.element.describe()
        return result


def _match_string(f: Field, value: Any, path: str, degraded: list[str] | None) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise TypeMismatch(path, f"expected string, got {type(value).__name__}")


def _match_integer(f: Field, value: Any, path: str, degraded: list[str] | None) -> int:
    if isinstance(value, bool):
        raise TypeMismatch(path, "expected integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            raise TypeMismatch(path, f"invalid integer {value!r}") from None
        if number.is_integer():
            return int(number)
    raise TypeMismatch(path, f"invalid integer {value!r}")


def _match_float(f: Field, value: Any, path: str, degraded: list[str] | None) -> float:
    if isinstance(value, bool):
        raise TypeMismatch(path, "expected float, got bool")
    if not isinstance(value, (int, float, str)):
        raise TypeMismatch(path, f"expected float, got {type(value).__name__}")
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except OverflowError:
        raise TypeMismatch(path, "float out of range") from None
    except ValueError:
        raise TypeMismatch(path, f"invalid float {value!r}") from None
    # NaN and infinity have no JSON representation
    if not math.isfinite(number):
        raise TypeMismatch(path, f"non-finite float {value!r}")
    return number


def _match_boolean(f: Field, value: Any, path: str, degraded: list[str] | None) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise TypeMismatch(path, f"invalid boolean {value!r}")


def _match_timestamp(f: Field, value: Any, path: str, degraded: list[str] | None) -> datetime:
    try:
        return parse_timestamp(value, f.format)
    except (ValueError, OverflowError) as e:
        raise TypeMismatch(path, f"invalid timestamp {value!r}: {e}") from None


def _match_array(f: Field, value: Any, path: str, degraded: list[str] | None) -> list[Any]:
    if not isinstance(value, (list, tuple)):
        raise TypeMismatch(path, f"expected array, got {type(value).__name__}")
    return [f.element.match(item, f"{path}[{i}]", degraded) for i, item in enumerate(value)]


def _match_object(
    f: Field, value: Any, path: str, degraded: list[str] | None
) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeMismatch(path, f"expected object, got {type(value).__name__}")
    # Unknown input keys are dropped
    return {
        child.column: child.match(value.get(child.name), _join(path, child.name), degraded)
        for child in f.fields
    }


_MATCHERS = {
    FieldKind.STRING: _match_string,
    FieldKind.INTEGER: _match_integer,
    FieldKind.FLOAT: _match_float,
    FieldKind.BOOLEAN: _match_boolean,
    FieldKind.TIMESTAMP: _match_timestamp,
    FieldKind.ARRAY: _match_array,
    FieldKind.OBJECT: _match_object,
}


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _has_event_time(f: Field) -> bool:
    if f.event_time:
        return True
    if f.element is not None and _has_event_time(f.element):
        return True
    return any(_has_event_time(child) for child in f.fields)


@dataclass(frozen=True)
class Schema:
    """Root object shape of one log type's normalized record."""

    name: str
    fields: tuple[Field, ...]
    description: str = ""
    root: Field = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(
            self,
            "root",
            Field(
                name="",
                kind=FieldKind.OBJECT,
                nullable=False,
                description=self.description,
                fields=self.fields,
            ),
        )

    def validate(self) -> None:
        """Check the whole schema for internal consistency.

        Raises:
            SchemaError: on the first inconsistency found
        """
        if not self.name:
            raise SchemaError("", "schema has no name")
        for child in self.fields:
            if isinstance(child, Field) and child.column.startswith(RESERVED_PREFIX):
                raise SchemaError(child.name, f"prefix {RESERVED_PREFIX!r} is reserved")
        self.root.validate(self.name)
        event_time_fields = [path for path, f in self.walk() if f.event_time]
        if len(event_time_fields) > 1:
            raise SchemaError(self.name, f"multiple event_time fields: {event_time_fields}")

    def match(self, value: Any, degraded: list[str] | None = None) -> dict[str, Any]:
        """Type-check and coerce a candidate record.

        Raises:
            TypeMismatch: if the record is not an object or a required
                field is missing or invalid
        """
        return self.root.match(value, "", degraded)

    def walk(self) -> Iterator[tuple[tuple[str, ...], Field]]:
        """Yield (column path, field) for every field outside of arrays."""
        stack = [((child.column,), child) for child in reversed(self.fields)]
        while stack:
            path, f = stack.pop()
            yield path, f
            if f.kind is FieldKind.OBJECT:
                stack.extend((path + (child.column,), child) for child in reversed(f.fields))

    @property
    def event_time_path(self) -> tuple[str, ...] | None:
        for path, f in self.walk():
            if f.event_time:
                return path
        return None

    def collect_indicators(self, data: dict[str, Any]) -> dict[str, list[str]]:
        """Collect indicator values from matched data, keyed by standard field."""
        found: dict[str, set[str]] = {}
        _collect(self.root, data, found)
        return {key: sorted(values) for key, values in sorted(found.items())}

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "fields": [child.describe() for child in self.fields],
        }


def _collect(f: Field, value: Any, found: dict[str, set[str]]) -> None:
    if value is None:
        return
    if f.kind is FieldKind.OBJECT:
        for child in f.fields:
            _collect(child, value.get(child.column), found)
    elif f.kind is FieldKind.ARRAY:
        for item in value:
            _collect(f.element, item, found)
    elif f.indicators and value != "":
        for indicator in f.indicators:
            found.setdefault(INDICATOR_FIELDS[indicator], set()).add(value)


# =============================================================================
# Declaration helpers
# =============================================================================


def string(
    name: str,
    description: str = "",
    *,
    required: bool = False,
    indicators: tuple[str, ...] = (),
) -> Field:
    return Field(name, FieldKind.STRING, not required, description, indicators=tuple(indicators))


def integer(name: str, description: str = "", *, required: bool = False) -> Field:
    return Field(name, FieldKind.INTEGER, not required, description)


def float_(name: str, description: str = "", *, required: bool = False) -> Field:
    return Field(name, FieldKind.FLOAT, not required, description)


def boolean(name: str, description: str = "", *, required: bool = False) -> Field:
    return Field(name, FieldKind.BOOLEAN, not required, description)


def timestamp(
    name: str,
    description: str = "",
    *,
    format: str | None = None,
    required: bool = False,
    event_time: bool = False,
) -> Field:
    return Field(
        name,
        FieldKind.TIMESTAMP,
        not required,
        description,
        format=format,
        event_time=event_time,
    )


def array(name: str, element: Field, description: str = "", *, required: bool = False) -> Field:
    return Field(name, FieldKind.ARRAY, not required, description, element=element)


def obj(name: str, *fields: Field, description: str = "", required: bool = False) -> Field:
    return Field(name, FieldKind.OBJECT, not required, description, fields=tuple(fields))


def to_json_value(value: Any) -> Any:
    """Render matched data as JSON-compatible values."""
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, dict):
        return {k: to_json_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_json_value(v) for v in value]
    return value
