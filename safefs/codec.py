"""Data normalization before writing and decoding after reading."""

import json
import re
from datetime import UTC, datetime, timedelta, timezone
from enum import Enum
from typing import Any

from safefs.errors import DecodeError


class ReturnAs(str, Enum):
    """How read content is handed back to the caller."""

    UTF8 = "utf8"
    BUF = "buf"
    JSON = "json"
    JSON_WITH_DATES = "jsonWithDates"


# The form Date.toJSON() produces: 2024-01-02T03:04:05.678Z or 2024-01-02T03:04:05.678+01:00
_ISO_DATE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})\.(\d*)"
    r"(?:(?P<zulu>Z)|(?P<sign>[+-])(?P<offset>[\d:]*))?",
    re.ASCII,
)
_OFFSET = re.compile(r"(\d{2}):?(\d{2})?", re.ASCII)

_BYTES_LIKE = (bytes, bytearray, memoryview)
_STRUCTURED = (dict, list, tuple)


def normalize_return_as(value: ReturnAs | str | None) -> ReturnAs:
    """Resolve a return mode, falling back to utf8 for anything unrecognized."""
    if isinstance(value, ReturnAs):
        return value
    try:
        return ReturnAs(value)
    except ValueError:
        return ReturnAs.UTF8


def _json_default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        if obj.tzinfo is None:
            return obj.isoformat(timespec="milliseconds")
        utc = obj.astimezone(UTC).replace(tzinfo=None)
        return utc.isoformat(timespec="milliseconds") + "Z"
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def serialize_json(data: Any, indent: int | None = None) -> str:
    """Serialize a structured value the way JSON.stringify(data, null, indent) does.

    NaN and infinities have no JSON form and raise ValueError.
    """
    if indent and indent > 0:
        return json.dumps(
            data, indent=indent, ensure_ascii=False, allow_nan=False, default=_json_default
        )
    return json.dumps(
        data, separators=(",", ":"), ensure_ascii=False, allow_nan=False, default=_json_default
    )


def to_bytes(data: Any, encoding: str = "utf-8") -> bytes:
    """Turn text or a bytes-like object into bytes ready for the filesystem."""
    if isinstance(data, _BYTES_LIKE):
        return bytes(data)
    if isinstance(data, str):
        return data.encode(encoding)
    raise TypeError(
        f"Cannot write data of type {type(data).__name__}; expected str, bytes or a JSON object"
    )


def normalize_data_to_write(data: Any, json_indent: int | None = None) -> bytes:
    """Serialize structured values to JSON, then encode everything to bytes."""
    if isinstance(data, _STRUCTURED):
        data = serialize_json(data, json_indent)
    return to_bytes(data)


def _parse_offset(sign: str, raw: str, value: str) -> timezone:
    match = _OFFSET.fullmatch(raw)
    if not match:
        raise DecodeError(f"Invalid UTC offset in date string: {value!r}")
    hours = int(match.group(1))
    minutes = int(match.group(2) or 0)
    delta = timedelta(hours=hours, minutes=minutes)
    try:
        return timezone(-delta if sign == "-" else delta)
    except ValueError as e:
        raise DecodeError(f"Invalid UTC offset in date string: {value!r}") from e


def parse_iso_date(value: str) -> datetime | None:
    """Parse a Date.toJSON()-style string.

    Returns None if the string does not look like a date at all and raises
    DecodeError if it looks like one but does not describe a valid instant.
    """
    match = _ISO_DATE.fullmatch(value)
    if not match:
        return None

    year, month, day, hour, minute, second = (int(g) for g in match.group(1, 2, 3, 4, 5, 6))
    fraction = match.group(7)
    microsecond = int(fraction[:6].ljust(6, "0")) if fraction else 0

    tz = None
    if match.group("zulu"):
        tz = UTC
    elif match.group("sign"):
        tz = _parse_offset(match.group("sign"), match.group("offset"), value)

    try:
        return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=tz)
    except ValueError as e:
        raise DecodeError(f"Invalid date string: {value!r}") from e


def revive_dates(value: Any) -> Any:
    """Recursively replace ISO date strings inside a decoded JSON value."""
    if isinstance(value, str):
        parsed = parse_iso_date(value)
        return value if parsed is None else parsed
    if isinstance(value, list):
        return [revive_dates(item) for item in value]
    if isinstance(value, dict):
        return {key: revive_dates(item) for key, item in value.items()}
    return value


def decode_content(data: bytes | None, return_as: ReturnAs, path: str | None = None) -> Any:
    """Decode raw file bytes according to the requested return mode.

    Absent content stays None for every mode.
    """
    if data is None:
        return None
    if return_as is ReturnAs.BUF:
        return data

    text = data.decode("utf-8", errors="replace")
    if return_as is ReturnAs.UTF8:
        return text

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON in {path or 'content'}: {e}", path=path) from e

    if return_as is ReturnAs.JSON_WITH_DATES:
        try:
            return revive_dates(parsed)
        except DecodeError as e:
            e.path = path
            raise
    return parsed
