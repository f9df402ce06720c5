"""
Tabula Kernel — Value Coercion

Record values are an open property bag written by the UI without a schema
check. Filters, sorts and search compare them with browser semantics:
truthiness, String(), Number(), === and the relational operators. This
module reproduces those rules once, so every query path agrees.

It also offers a tagged reading of a value (`read_value`) that keeps
"absent" and "present but empty" apart, for display and introspection.

Pure functions. No IO.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from typing import Any

from tabula.kernel.types import EMPTY_PLACEHOLDER, SYSTEM_PROPERTY_FIELDS


class _Missing:
    """Sentinel for a property key that isn't in the record at all."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

NAN = float("nan")
# smallest int magnitude that no longer fits a double
_DOUBLE_LIMIT = 2**1024

# ---------------------------------------------------------------------------
# Truthiness
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def is_truthy(value: Any) -> bool:
    """
    Browser truthiness. Falsy: MISSING, None, False, 0, NaN and "".
    Containers are truthy even when empty.
    """
    if value is MISSING or value is None:
        return False
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def is_empty(value: Any) -> bool:
    """
    The filter definition of "empty": falsy or the empty string.
    0 and False count as empty.
    """
    return not is_truthy(value) or value == ""


# ---------------------------------------------------------------------------
# String coercion
# ---------------------------------------------------------------------------


def _number_to_string(value: int | float) -> str:
    if isinstance(value, int):
        if abs(value) < _DOUBLE_LIMIT:
            return str(value)
        return "Infinity" if value > 0 else "-Infinity"
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def to_js_string(value: Any) -> str:
    """String(value)."""
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if _is_number(value):
        return _number_to_string(value)
    if isinstance(value, str):
        return value
    if isinstance(value, list | tuple):
        # Array.prototype.join renders null/undefined members as ""
        return ",".join("" if v is None or v is MISSING else to_js_string(v) for v in value)
    if isinstance(value, dict):
        return "[object Object]"
    if isinstance(value, datetime | date):
        return value.isoformat()
    return str(value)


# ---------------------------------------------------------------------------
# Number coercion
# ---------------------------------------------------------------------------

_DECIMAL_RE = re.compile(r"^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$")
_INFINITY_RE = re.compile(r"^([+-]?)Infinity$")
_RADIX_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}
_RADIX_DIGITS = {16: "0123456789abcdef", 8: "01234567", 2: "01"}


def _string_to_number(text: str) -> float:
    s = text.strip()
    if s == "":
        return 0.0
    if _DECIMAL_RE.match(s):
        return float(s)
    m = _INFINITY_RE.match(s)
    if m:
        return -math.inf if m.group(1) == "-" else math.inf
    prefix = s[:2].lower()
    if prefix in _RADIX_PREFIXES and len(s) > 2:
        radix = _RADIX_PREFIXES[prefix]
        digits = s[2:].lower()
        if all(c in _RADIX_DIGITS[radix] for c in digits):
            try:
                return float(int(digits, radix))
            except OverflowError:
                return math.inf
    return NAN


def to_js_number(value: Any) -> float:
    """Number(value). Returns NaN (never raises) for anything non-numeric."""
    if value is MISSING:
        return NAN
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if _is_number(value):
        try:
            return float(value)
        except OverflowError:
            # ints beyond double range
            return math.inf if value > 0 else -math.inf
    if isinstance(value, str):
        return _string_to_number(value)
    if isinstance(value, list | tuple):
        return _string_to_number(to_js_string(value))
    return NAN


# ---------------------------------------------------------------------------
# Equality and ordering
# ---------------------------------------------------------------------------


def strict_equals(a: Any, b: Any) -> bool:
    """a === b: same type category and same value; containers by identity."""
    if a is MISSING or b is MISSING:
        return a is b
    if a is None or b is None:
        return a is b
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if _is_number(a) or _is_number(b):
        return _is_number(a) and _is_number(b) and a == b
    if isinstance(a, str) or isinstance(b, str):
        return isinstance(a, str) and isinstance(b, str) and a == b
    return a is b


def _to_primitive(value: Any) -> Any:
    if isinstance(value, list | tuple | dict):
        return to_js_string(value)
    if isinstance(value, datetime | date):
        return to_js_string(value)
    return value


def _utf16(s: str) -> bytes:
    return s.encode("utf-16-be", "surrogatepass")


def js_less_than(a: Any, b: Any) -> bool:
    """a < b with abstract relational comparison rules."""
    pa, pb = _to_primitive(a), _to_primitive(b)
    if isinstance(pa, str) and isinstance(pb, str):
        return _utf16(pa) < _utf16(pb)
    na, nb = to_js_number(pa), to_js_number(pb)
    if math.isnan(na) or math.isnan(nb):
        return False
    return na < nb


def compare_values(a: Any, b: Any) -> int:
    """
    -1 if a < b, 1 if a > b, else 0.
    Equal and incomparable (NaN, undefined) values both give 0.
    """
    if js_less_than(a, b):
        return -1
    if js_less_than(b, a):
        return 1
    return 0


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def parse_date(value: Any) -> datetime | None:
    """
    Parse a DATE property value into an aware UTC datetime.

    Accepts ISO 8601 date and datetime strings, `date` and `datetime`
    objects. Naive datetimes are taken as UTC. Returns None for anything
    else, including empty values and numbers.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    try:
        return dt.astimezone(UTC)
    except OverflowError:
        # shifted outside datetime.min .. datetime.max
        return None


def date_key(value: Any) -> str | None:
    """YYYY-MM-DD of a parsable date value (UTC), else None."""
    dt = parse_date(value)
    if dt is None:
        return None
    return dt.date().isoformat()


# ---------------------------------------------------------------------------
# Select options
# ---------------------------------------------------------------------------


def select_option_id(value: Any) -> str | None:
    """
    Resolve a select value to an option id.

    Values are usually the option id itself, but imported data sometimes
    carries the whole option object ({id, name}, {value, label} or {_id}).
    """
    if not is_truthy(value):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        for key in ("id", "value", "_id"):
            candidate = value.get(key)
            if isinstance(candidate, str) and candidate:
                return candidate
    return None


def select_option_ids(value: Any) -> list[str]:
    """Option ids of a MULTI_SELECT value (a list), in order."""
    if not isinstance(value, list | tuple):
        single = select_option_id(value)
        return [single] if single else []
    ids: list[str] = []
    for item in value:
        oid = select_option_id(item)
        if oid:
            ids.append(oid)
    return ids


# ---------------------------------------------------------------------------
# Tagged values
# ---------------------------------------------------------------------------

_KIND_BY_TYPE: dict[str, str] = {
    "TEXT": "text",
    "TITLE": "text",
    "EMAIL": "text",
    "URL": "text",
    "PHONE": "text",
    "PERSON": "text",
    "CREATED_BY": "text",
    "LAST_EDITED_BY": "text",
    "NUMBER": "number",
    "CHECKBOX": "bool",
    "DATE": "date",
    "CREATED_TIME": "date",
    "LAST_EDITED_TIME": "date",
    "SELECT": "select",
    "MULTI_SELECT": "multi_select",
}


@dataclass(frozen=True)
class Value:
    """
    A record value read through its property's type.

    kind is one of: absent, empty, text, number, bool, date, select,
    multi_select, other. `raw` is the stored value (MISSING when absent).
    """

    kind: str
    raw: Any

    @property
    def is_absent(self) -> bool:
        return self.kind == "absent"

    @property
    def is_blank(self) -> bool:
        return self.kind in ("absent", "empty")


def raw_value(record: dict[str, Any], prop: dict[str, Any]) -> Any:
    """The stored value for a property, MISSING when the key isn't there."""
    system_field = SYSTEM_PROPERTY_FIELDS.get(prop.get("type", ""))
    if system_field is not None:
        return record.get(system_field, MISSING)
    return record.get("properties", {}).get(prop.get("id"), MISSING)


def read_value(record: dict[str, Any], prop: dict[str, Any]) -> Value:
    raw = raw_value(record, prop)
    if raw is MISSING:
        return Value("absent", raw)
    if raw is None or raw == "" or (isinstance(raw, list | tuple | dict) and not raw):
        return Value("empty", raw)

    kind = _KIND_BY_TYPE.get(prop.get("type", ""), "other")
    if kind == "number" and not _is_number(raw):
        kind = "other"
    elif kind == "bool" and not isinstance(raw, bool):
        kind = "other"
    elif kind == "date" and parse_date(raw) is None:
        kind = "other"
    return Value(kind, raw)


def _option_name(prop: dict[str, Any], option_id: str) -> str:
    for opt in prop.get("select_options") or []:
        if opt.get("id") == option_id:
            return opt.get("name", option_id)
    return option_id


def display_value(record: dict[str, Any], prop: dict[str, Any]) -> str:
    """Plain-text rendering of a cell. Absent and empty values show a dash."""
    value = read_value(record, prop)
    if value.is_blank:
        return EMPTY_PLACEHOLDER

    if value.kind == "bool":
        return "Yes" if value.raw else "No"
    if value.kind == "date":
        dt = parse_date(value.raw)
        raw = value.raw
        date_only = (isinstance(raw, str) and len(raw.strip()) == 10) or (
            isinstance(raw, date) and not isinstance(raw, datetime)
        )
        if date_only:
            return dt.date().isoformat()
        return dt.isoformat().replace("+00:00", "Z")
    if value.kind == "select":
        oid = select_option_id(value.raw)
        return _option_name(prop, oid) if oid else to_js_string(value.raw)
    if value.kind == "multi_select":
        return ", ".join(_option_name(prop, oid) for oid in select_option_ids(value.raw))
    return to_js_string(value.raw)


def record_title(record: dict[str, Any], properties: list[dict[str, Any]]) -> str:
    """
    Title of a record for cards and list rows: the TITLE property, else the
    first TEXT property, else the first property. "Untitled" when blank.
    """
    title_prop = (
        next((p for p in properties if p.get("type") == "TITLE"), None)
        or next((p for p in properties if p.get("type") == "TEXT"), None)
        or (properties[0] if properties else None)
    )
    if title_prop is None:
        return "Untitled"
    value = read_value(record, title_prop)
    if value.is_blank:
        return "Untitled"
    return display_value(record, title_prop)
