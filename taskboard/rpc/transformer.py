"""JSON encoding that keeps datetimes intact.

Payloads use the superjson layout understood by tRPC clients:

    {"json": {...}, "meta": {"values": {"tasks.0.createdAt": ["Date"]}}}

Plain JSON without a ``json`` key is accepted as input and passed through.
"""

import re
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

_UNESCAPED_DOT = re.compile(r"(?<!\\)\.")


def _escape_key(key: str) -> str:
    return key.replace(".", "\\.")


def _split_path(path: str) -> list[str]:
    return [part.replace("\\.", ".") for part in _UNESCAPED_DOT.split(path)]


def _format_date(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_date(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _encode(value: Any, path: list[str], annotations: dict[str, list[str]]) -> Any:
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True)
    if isinstance(value, datetime):
        annotations[".".join(path)] = ["Date"]
        return _format_date(value)
    if isinstance(value, dict):
        return {
            key: _encode(item, path + [_escape_key(str(key))], annotations)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [
            _encode(item, path + [str(index)], annotations)
            for index, item in enumerate(value)
        ]
    return value


def serialize(value: Any) -> dict:
    annotations: dict[str, list[str]] = {}
    encoded = _encode(value, [], annotations)
    result = {"json": encoded}
    if annotations:
        # a bare top-level value carries its annotation directly
        if list(annotations) == [""]:
            result["meta"] = {"values": annotations[""]}
        else:
            result["meta"] = {"values": annotations}
    return result


def _apply(value: Any, annotation: str) -> Any:
    if annotation == "Date":
        if not isinstance(value, str):
            raise ValueError(f"Date annotation on non-string value: {value!r}")
        return _parse_date(value)
    if annotation == "undefined":
        return None
    raise ValueError(f"Unsupported annotation: {annotation}")


def _apply_at(container: Any, parts: list[str], annotation: str) -> None:
    for part in parts[:-1]:
        container = container[int(part)] if isinstance(container, list) else container[part]
    last = parts[-1]
    if isinstance(container, list):
        container[int(last)] = _apply(container[int(last)], annotation)
    elif annotation == "undefined":
        container.pop(last, None)
    else:
        container[last] = _apply(container[last], annotation)


def deserialize(payload: Any) -> Any:
    """Decode a transformer payload; raises ValueError on a malformed one."""
    if not isinstance(payload, dict) or "json" not in payload:
        return payload
    value = payload["json"]
    meta = payload.get("meta") or {}
    if not isinstance(meta, dict):
        raise ValueError("Invalid transformer metadata")
    values = meta.get("values")
    if not values:
        return value
    if isinstance(values, list):
        return _apply(value, values[0])
    if not isinstance(values, dict):
        raise ValueError("Invalid transformer metadata")
    try:
        for path, annotation in values.items():
            _apply_at(value, _split_path(path), annotation[0])
    except (KeyError, IndexError, TypeError) as e:
        raise ValueError(f"Invalid transformer metadata: {e}") from e
    return value
