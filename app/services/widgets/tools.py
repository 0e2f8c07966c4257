"""Countdown, notes and todo widgets.

These only validate and normalize what the dashboard sends; there is no
upstream to call and nothing to cache.
"""
import json
from datetime import datetime, timezone
from typing import Any

from app.core.errors import InvalidInputError

MAX_TITLE_LENGTH = 100
MAX_NOTE_LENGTH = 10_000
MAX_TODO_ITEMS = 50
MAX_TODO_TEXT = 200

FONT_SIZES = ("small", "normal", "large")
LINE_HEIGHTS = ("compact", "normal", "relaxed")
SORT_ORDERS = ("newest", "oldest", "alphabetical", "priority")
PRIORITIES = ("normal", "high", "urgent")


def _title(value: str | None, default: str) -> str:
    title = (value if value is not None else default).strip()
    if not title or len(title) > MAX_TITLE_LENGTH:
        raise InvalidInputError("Invalid title parameter")
    return title


def _flag(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() == "true"


def _clamp_int(value: str | None, default: int, low: int, high: int) -> int:
    try:
        number = int(value) if value not in (None, "") else default
    except ValueError:
        number = default
    return max(low, min(high, number))


def _now() -> datetime:
    return datetime.now(timezone.utc)


def parse_target_date(value: str) -> datetime:
    """Parse an ISO-8601 date; naive values are taken as UTC."""
    try:
        target = datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError) as e:
        raise InvalidInputError("Invalid target date", details={"targetDate": value}) from e
    if target.tzinfo is None:
        target = target.replace(tzinfo=timezone.utc)
    return target


def next_new_year(now: datetime | None = None) -> datetime:
    now = now or _now()
    return datetime(now.year + 1, 1, 1, tzinfo=timezone.utc)


def build_countdown(params: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
    now = now or _now()
    title = _title(params.get("title"), "Countdown")
    raw_target = params.get("targetDate") or next_new_year(now).isoformat()
    target = parse_target_date(raw_target)
    timezone_name = params.get("timezone") or "UTC"

    remaining = target - now
    if remaining.total_seconds() <= 0:
        return {
            "title": title,
            "targetDate": target.isoformat(),
            "timezone": timezone_name,
            "completed": True,
            "timeRemaining": 0,
            "daysRemaining": 0,
        }

    return {
        "title": title,
        "targetDate": target.isoformat(),
        "timezone": timezone_name,
        "showProgress": _flag(params.get("showProgress"), True),
        "alertDays": _clamp_int(params.get("alertDays"), 7, 0, 365),
        "completed": False,
        "timeRemaining": int(remaining.total_seconds() * 1000),
        "daysRemaining": remaining.days,
        "lastUpdated": now.isoformat(),
    }


def build_notes(params: dict[str, Any]) -> dict[str, Any]:
    title = _title(params.get("title"), "Notes")
    content = params.get("content") or ""
    if len(content) > MAX_NOTE_LENGTH:
        raise InvalidInputError(f"Content too long (max {MAX_NOTE_LENGTH} characters)")
    content = content.strip()

    font_size = params.get("fontSize")
    line_height = params.get("lineHeight")
    return {
        "title": title,
        "content": content,
        "wordCount": len(content.split()),
        "fontSize": font_size if font_size in FONT_SIZES else "normal",
        "lineHeight": line_height if line_height in LINE_HEIGHTS else "normal",
        "showWordCount": _flag(params.get("showWordCount"), True),
        "autoSave": _flag(params.get("autoSave"), True),
        "lastUpdated": _now().isoformat(),
    }


def _todo_items(raw: str | None) -> list[dict[str, Any]]:
    try:
        parsed = json.loads(raw or "[]")
    except ValueError:
        return []
    if not isinstance(parsed, list):
        return []

    items = []
    for index, item in enumerate(parsed[:MAX_TODO_ITEMS]):
        if not isinstance(item, dict):
            continue
        text = item.get("text")
        priority = item.get("priority")
        items.append({
            "id": str(item.get("id") or f"item-{index}"),
            "text": text[:MAX_TODO_TEXT] if isinstance(text, str) else "",
            "completed": bool(item.get("completed")),
            "createdAt": item.get("createdAt") or _now().isoformat(),
            "priority": priority if priority in PRIORITIES else "normal",
        })
    return items


def build_todo(params: dict[str, Any]) -> dict[str, Any]:
    sort_by = params.get("sortBy")
    return {
        "title": _title(params.get("title"), "To-Do List"),
        "items": _todo_items(params.get("items")),
        "showCompleted": _flag(params.get("showCompleted"), True),
        "maxItems": _clamp_int(params.get("maxItems"), 10, 1, MAX_TODO_ITEMS),
        "sortBy": sort_by if sort_by in SORT_ORDERS else "newest",
        "enablePriorities": _flag(params.get("enablePriorities"), False),
        "lastUpdated": _now().isoformat(),
    }
