"""Validation helpers for the roster forms."""

from __future__ import annotations

import re
from typing import Iterable, List, Tuple

from modules.timetabler import DAYS_PER_WEEK, normalize_subjects


# Any text without control characters.
_ID_RE = re.compile(r"^[^\x00-\x1f\x7f]{1,64}$")


def require_non_empty(value: str, field: str) -> Tuple[bool, str]:
    if not value or not value.strip():
        return False, f"{field} cannot be empty"
    return True, ""


def validate_id(value: str, field: str) -> Tuple[bool, str]:
    ok, msg = require_non_empty(value, field)
    if not ok:
        return ok, msg
    if not _ID_RE.match(value.strip()):
        return False, f"{field} must be 1-64 printable characters"
    return True, ""


def validate_positive_int(value: int, field: str, min_value: int = 1, max_value: int | None = None) -> Tuple[bool, str]:
    if value is None:
        return False, f"{field} is required"
    if value < min_value:
        return False, f"{field} must be >= {min_value}"
    if max_value is not None and value > max_value:
        return False, f"{field} must be <= {max_value}"
    return True, ""


def parse_positive_int(text: str, field: str) -> Tuple[int | None, str]:
    """Parse a text box into a positive int. Returns (value, error message)."""

    try:
        value = int(str(text or "").strip())
    except ValueError:
        return None, f"{field} must be a whole number"
    ok, msg = validate_positive_int(value, field)
    return (value if ok else None), msg


def validate_unique(values: Iterable[str], field: str) -> Tuple[bool, str]:
    vals = [v.strip() for v in values if v and v.strip()]
    if len(vals) != len(set(vals)):
        return False, f"{field} contains duplicates"
    return True, ""


def parse_subjects(text: str) -> List[str]:
    """Split comma separated subjects; blanks dropped, duplicates collapsed."""

    return list(normalize_subjects(str(text or "").split(",")))


def validate_subject_count(subjects: Iterable[str], *, daily_lesson_capacity: int) -> Tuple[bool, str]:
    """A student cannot take more subjects than the week has slots."""

    n = len(list(subjects))
    if n == 0:
        return False, "At least one subject is required"
    weekly_slots = int(daily_lesson_capacity) * DAYS_PER_WEEK
    if n > weekly_slots:
        return (
            False,
            f"{n} subjects do not fit into {weekly_slots} weekly slots "
            f"({daily_lesson_capacity} per day x {DAYS_PER_WEEK} days)",
        )
    return True, ""
