"""Roster collection for the timetabler.

The engine trusts its input. This module is where the input is checked:
capacities must be positive, student IDs unique and non-empty, and every
student needs between 1 and `daily_lesson_capacity * 5` subjects.

`RosterBuilder` mirrors the screens of the app (general configuration, then
add / edit / remove students) and produces a `TimetableInfo` on submit.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from modules.timetabler import StudentInfo, TimetableInfo, normalize_subjects

from .validators import (
    parse_subjects,
    validate_id,
    validate_positive_int,
    validate_subject_count,
    validate_unique,
)


logger = logging.getLogger(__name__)


class RosterBuilder:
    def __init__(self) -> None:
        self.max_groups: Optional[int] = None
        self.daily_lesson_capacity: Optional[int] = None
        # student_id -> subjects, in insertion order
        self._subjects_by_student_id: Dict[str, List[str]] = {}

    @property
    def student_ids(self) -> List[str]:
        return list(self._subjects_by_student_id.keys())

    def subjects_of(self, student_id: str) -> List[str]:
        return list(self._subjects_by_student_id.get(student_id, []))

    def set_general_config(self, *, max_groups: int, daily_lesson_capacity: int) -> Tuple[bool, str]:
        for value, field in [(max_groups, "Max groups"), (daily_lesson_capacity, "Daily lesson capacity")]:
            ok, msg = validate_positive_int(value, field)
            if not ok:
                return ok, msg
        self.max_groups = int(max_groups)
        self.daily_lesson_capacity = int(daily_lesson_capacity)
        return True, ""

    def _check_subjects(self, subjects: List[str]) -> Tuple[bool, str]:
        if self.daily_lesson_capacity is None:
            if not subjects:
                return False, "At least one subject is required"
            return True, ""
        return validate_subject_count(subjects, daily_lesson_capacity=self.daily_lesson_capacity)

    def add_student(self, student_id: str, subjects_text: str) -> Tuple[bool, str]:
        ok, msg = validate_id(student_id, "Student ID")
        if not ok:
            return ok, msg
        sid = student_id.strip()
        if sid in self._subjects_by_student_id:
            return False, f"Student {sid} already exists"

        subjects = parse_subjects(subjects_text)
        ok, msg = self._check_subjects(subjects)
        if not ok:
            return ok, msg

        self._subjects_by_student_id[sid] = subjects
        logger.debug("Added student %r with %d subjects", sid, len(subjects))
        return True, ""

    def update_subjects(self, student_id: str, subjects_text: str) -> Tuple[bool, str]:
        if student_id not in self._subjects_by_student_id:
            return False, f"Unknown student {student_id}"
        subjects = parse_subjects(subjects_text)
        ok, msg = self._check_subjects(subjects)
        if not ok:
            return ok, msg
        self._subjects_by_student_id[student_id] = subjects
        return True, ""

    def remove_student(self, student_id: str) -> bool:
        return self._subjects_by_student_id.pop(student_id, None) is not None

    def validate(self) -> List[str]:
        """Everything that must hold before the engine may run."""

        errors: List[str] = []
        if self.max_groups is None or self.daily_lesson_capacity is None:
            errors.append("General configuration is missing")
        if not self._subjects_by_student_id:
            errors.append("At least one student is required")
        if self.daily_lesson_capacity is not None:
            for sid, subjects in self._subjects_by_student_id.items():
                ok, msg = validate_subject_count(subjects, daily_lesson_capacity=self.daily_lesson_capacity)
                if not ok:
                    errors.append(f"{sid}: {msg}")
        return errors

    def build(self) -> TimetableInfo:
        errors = self.validate()
        if errors:
            raise ValueError("; ".join(errors))

        return TimetableInfo(
            max_groups=int(self.max_groups),
            daily_lesson_capacity=int(self.daily_lesson_capacity),
            students=tuple(
                StudentInfo(student_id=sid, subjects=normalize_subjects(subjects))
                for sid, subjects in self._subjects_by_student_id.items()
            ),
        )

    @classmethod
    def from_timetable_info(cls, info: TimetableInfo) -> "RosterBuilder":
        ok, msg = validate_unique([s.student_id for s in info.students], "Student IDs")
        if not ok:
            raise ValueError(msg)

        builder = cls()
        builder.max_groups = int(info.max_groups)
        builder.daily_lesson_capacity = int(info.daily_lesson_capacity)
        for s in info.students:
            builder._subjects_by_student_id[s.student_id] = list(s.subjects)
        return builder
