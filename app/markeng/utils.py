from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

CRORE = 10_000_000
LAKH = 100_000


def clean(value: Any) -> str | None:
    """Trimmed string or None for blanks."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_date(value: Any) -> date | None:
    """Accept date/datetime objects or YYYY-MM-DD strings; anything else is None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_float(value: Any, default: float | None = None) -> float | None:
    if value is None:
        return default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    text = re.sub(r"[₹,\s]", "", str(value))
    if not text:
        return default
    try:
        return float(text)
    except ValueError:
        return default


def parse_int(value: Any, default: int | None = None) -> int | None:
    f = parse_float(value)
    return int(f) if f is not None else default


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("1", "true", "yes", "on", "y")


def group_indian(value: float) -> str:
    """12345678.5 -> '1,23,45,678.5' (lakh/crore digit grouping)."""
    negative = value < 0
    value = round(abs(value), 2)
    whole = int(value)
    frac = round(value - whole, 2)
    digits = str(whole)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        head = re.sub(r"(\d)(?=(\d{2})+$)", r"\1,", head)
        digits = f"{head},{tail}"
    if frac:
        digits += f"{frac:.2f}"[1:].rstrip("0")
    return f"-{digits}" if negative else digits


def format_currency(value: float | None) -> str:
    val = float(value or 0)
    if val >= CRORE:
        return f"₹ {val / CRORE:.2f} Cr"
    if val >= LAKH:
        return f"₹ {val / LAKH:.2f} L"
    return f"₹ {group_indian(val)}"


def format_crore(value: float | None) -> str:
    """Annual turnover columns are shown in crores with two decimals."""
    return f"{float(value or 0) / CRORE:.2f}"


_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def keys_to_snake(data: dict[str, Any]) -> dict[str, Any]:
    return {to_snake(k): v for k, v in data.items()}


def keys_to_camel(data: dict[str, Any]) -> dict[str, Any]:
    return {to_camel(k): v for k, v in data.items()}
