"""Typed and validated request data for the web interface."""

from __future__ import annotations

import re
from dataclasses import MISSING, dataclass, field, fields
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

T = TypeVar("T")

UINT32_MAX = 2**32 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_SIGNED_RE = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_RE = re.compile(r"[0-9]+")
_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}

# Layouts accepted by the "datetime" rule: (format, shape the text must have).
_DATETIME_LAYOUTS = {
    "2006-01-02T15:04:05": (
        "%Y-%m-%dT%H:%M:%S",
        re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}"),
    ),
}


class FormError(ValueError):
    """Request data could not be parsed or failed validation.

    errors holds (field name, failed rule) pairs; the rule is "parse" when
    the value could not be converted.
    """

    def __init__(self, model: str, errors: List[Tuple[str, str]]) -> None:
        self.model = model
        self.errors = errors
        super().__init__(
            "; ".join(
                f"field validation for '{model}.{name}' failed on the '{tag}' tag"
                for name, tag in errors
            )
        )


def _to_str(raw: Any) -> str:
    return raw if isinstance(raw, str) else str(raw)


def _integer(raw: Any, pattern: "re.Pattern[str]", low: int, high: int) -> int:
    if isinstance(raw, bool):
        raise ValueError("booleans are not integers")
    if isinstance(raw, int):
        value = raw
    else:
        text = _to_str(raw)
        if not pattern.fullmatch(text):
            raise ValueError(f"invalid integer {text!r}")
        value = int(text)
    if not low <= value <= high:
        raise ValueError(f"{value} out of range")
    return value


def _to_uint32(raw: Any) -> int:
    return _integer(raw, _UNSIGNED_RE, 0, UINT32_MAX)


def _to_int(raw: Any) -> int:
    return _integer(raw, _SIGNED_RE, INT64_MIN, INT64_MAX)


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = _to_str(raw)
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"invalid boolean {text!r}")


def _to_datetime(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    return datetime.fromisoformat(_to_str(raw))


def _field(
    key: str,
    convert: Callable[[Any], Any],
    rules: str = "",
    default: Any = MISSING,
) -> Any:
    if default is MISSING:
        default = convert("") if convert is _to_str else (False if convert is _to_bool else 0)
    return field(default=default, metadata={"key": key, "convert": convert, "rules": rules})


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value is False or (
        isinstance(value, int) and not isinstance(value, bool) and value == 0
    )


def _check(value: Any, rule: str, param: str) -> bool:
    if rule == "required":
        return not _is_empty(value)
    if value is None:
        return False
    if rule in ("min", "max"):
        measure = len(value) if isinstance(value, str) else value
        bound = int(param)
        return measure >= bound if rule == "min" else measure <= bound
    if rule == "oneof":
        return str(value) in param.split()
    if rule == "datetime":
        fmt, shape = _DATETIME_LAYOUTS[param]
        text = _to_str(value)
        if not shape.fullmatch(text):
            return False
        try:
            datetime.strptime(text, fmt)
        except ValueError:
            return False
        return True
    raise ValueError(f"unknown validation rule {rule!r}")


def _validate(value: Any, rules: str) -> Optional[str]:
    """Return the first rule the value fails, or None."""
    parts = [r for r in rules.split(",") if r]
    if "omitempty" in parts:
        if _is_empty(value):
            return None
        parts.remove("omitempty")
    for part in parts:
        rule, _, param = part.partition("=")
        if not _check(value, rule, param):
            return rule
    return None


def parse_form(model: Type[T], data: Mapping[str, Any]) -> T:
    """Build a model from request data, converting and validating every field.

    Missing keys and empty strings take the field's zero value.
    Raises FormError listing every field that failed.
    """
    values: Dict[str, Any] = {}
    errors: List[Tuple[str, str]] = []
    for spec in fields(model):
        meta = spec.metadata
        raw = data.get(meta["key"])
        if raw is None or raw == "":
            value = spec.default
        else:
            try:
                value = meta["convert"](raw)
            except (TypeError, ValueError):
                errors.append((spec.name, "parse"))
                continue
        values[spec.name] = value
    if errors:
        raise FormError(model.__name__, errors)
    for spec in fields(model):
        failed = _validate(values[spec.name], spec.metadata["rules"])
        if failed is not None:
            errors.append((spec.name, failed))
    if errors:
        raise FormError(model.__name__, errors)
    return model(**values)


_DATETIME_RULE = "datetime=2006-01-02T15:04:05"


@dataclass(frozen=True)
class AnnounceServer:
    ip: str = _field("server-ip", _to_str, "required,min=3,max=255")
    port: int = _field("server-port", _to_uint32, "required,min=1,max=65535")
    state: int = _field("server-state", _to_uint32, "max=3")
    proxy_ip: Optional[str] = _field("proxy-ip", _to_str, "omitempty,min=3,max=255", None)
    proxy_port: Optional[int] = _field("proxy-port", _to_int, "omitempty,min=1,max=65535", None)
    name: str = _field("server-name", _to_str, "required,min=1,max=30")


@dataclass(frozen=True)
class BuildId:
    id: int = _field("build_id", _to_int, "required")


@dataclass(frozen=True)
class BuildEdit:
    id: int = _field("build_id", _to_uint32)
    ship_id: int = _field("template_id", _to_uint32)
    finishes_at: str = _field("finishes_at", _to_str, _DATETIME_RULE)
    action: str = _field("action", _to_str, "required,oneof=save delete new duplicate finish")


@dataclass(frozen=True)
class CommanderId:
    commander_id: int = _field("commander_id", _to_uint32, "required,min=1")


@dataclass(frozen=True)
class FrameId:
    id: int = _field("id", _to_int, "required")


@dataclass(frozen=True)
class ItemId:
    id: int = _field("item_id", _to_int, "required")
    data: int = _field("data", _to_int, "omitempty")


@dataclass(frozen=True)
class ItemEdit:
    count: int = _field("count", _to_uint32, f"omitempty,min=1,max={UINT32_MAX}")
    action: str = _field("action", _to_str, "required,oneof=save delete new")
    template_id: int = _field("template_id", _to_uint32, "omitempty")
    data: int = _field("data", _to_uint32, "omitempty")


@dataclass(frozen=True)
class PlayerId:
    id: int = _field("player_id", _to_int, "required")


@dataclass(frozen=True)
class QuickPlayerEdit:
    name: str = _field("name", _to_str, "required,min=3,max=30")
    level: int = _field("level", _to_int, "required,min=1,max=9999")


@dataclass(frozen=True)
class ResourceId:
    resource_id: int = _field("resource_id", _to_int, "required")


@dataclass(frozen=True)
class ResourceEdit:
    amount: int = _field("amount", _to_uint32, f"omitempty,min=1,max={UINT32_MAX}")
    action: str = _field("action", _to_str, "required,oneof=save delete new")
    resource_id: int = _field("resource_id", _to_uint32, "omitempty")


@dataclass(frozen=True)
class ServerId:
    id: int = _field("server_id", _to_int, "required")


@dataclass(frozen=True)
class ShipId:
    id: int = _field("ship_id", _to_int, "required")


@dataclass(frozen=True)
class ShipEdit:
    id: int = _field("ship_id", _to_uint32)
    template_id: int = _field("template_id", _to_uint32)
    level: int = _field("level", _to_uint32, "omitempty,min=1,max=125")
    max_level: int = _field("max_level", _to_uint32, "omitempty,min=1,max=125")
    energy: int = _field("energy", _to_uint32, "omitempty,min=0,max=150")
    intimacy: int = _field("intimacy", _to_uint32, "omitempty,min=0,max=20000")
    is_locked: bool = _field("locked", _to_bool)
    is_secretary: bool = _field("secretary", _to_bool)
    propose: bool = _field("propose", _to_bool)
    common_flag: bool = _field("common_flag", _to_bool)
    blueprint_flag: bool = _field("blueprint_flag", _to_bool)
    proficiency: bool = _field("proficiency", _to_bool)
    activity_npc: int = _field("activity_npc", _to_uint32, "omitempty,min=0")
    custom_name: str = _field("custom_name", _to_str, "omitempty,min=3,max=30")
    custom_name_time: Optional[datetime] = _field(
        "custom_name_time", _to_datetime, "omitempty", None
    )
    create_time: str = _field("create_time", _to_str, _DATETIME_RULE)
    skin_id: int = _field("skin_id", _to_uint32, "omitempty,min=0")
    action: str = _field("action", _to_str, "required,oneof=new save duplicate delete")


@dataclass(frozen=True)
class TemplateId:
    id: int = _field("template_id", _to_int, "required")