"""Weekly subject-group timetabling module.

This module places every student's requested subjects into a fixed weekly grid
of lesson slots (5 days x `daily_lesson_capacity` lessons per day). Students
who share a subject are grouped into class groups, and each subject may have at
most `max_groups` groups.

It is a greedy engine, not an optimizer:
- deterministic, single pass over the roster
- no partial results (one stuck student => the whole roster is `Unsolved`)
- pure: no input, rendering or persistence happens here

Algorithm
---------
Students are processed in roster order and subjects in the order listed.
For each subject:

1. Lazy reuse: join the first existing group whose slot is free for the student.
2. Below capacity: open a new group at the student's first free slot.
3. At capacity: rebalance. Candidates are the groups the student already sits
   in plus every group of the subject. Smallest groups are tried first. A
   candidate group is moved to one of the student's free slots if all of its
   members are free there, which opens a slot for the subject.

Once all subjects of a student are placed, the student's personal slots are
folded into the group registry so that later students see the memberships.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

import json
import logging


logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 5
WEEK_DAYS: Tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")

# (subject, group_idx) or None for a free slot
SlotEntry = Optional[Tuple[str, int]]
Candidate = Tuple[str, int]


# ----------------------------
# Data models / input schema
# ----------------------------


@dataclass(frozen=True)
class StudentInfo:
    student_id: str
    subjects: Tuple[str, ...]


@dataclass(frozen=True)
class TimetableInfo:
    """Everything one solve call needs.

    Attributes:
        max_groups: Maximum number of groups per subject.
        daily_lesson_capacity: Lessons per day; the week has 5 days.
        students: Roster, processed in this order.
    """

    max_groups: int
    daily_lesson_capacity: int
    students: Tuple[StudentInfo, ...]

    @property
    def total_slots(self) -> int:
        return int(self.daily_lesson_capacity) * DAYS_PER_WEEK


@dataclass(frozen=True)
class Solved:
    # slot -> subjects taught in that slot
    subjects_by_slot: List[List[str]]
    # student_id -> personal slots
    slots_by_student_id: Dict[str, List[SlotEntry]]
    daily_lesson_capacity: int


@dataclass(frozen=True)
class Unsolved:
    pass


TimetableResult = Union[Solved, Unsolved]


def normalize_subjects(raw: Iterable[str]) -> Tuple[str, ...]:
    """Strip names, drop empty ones and collapse duplicates (first one wins)."""

    out: List[str] = []
    for s in raw or ():
        name = str(s).strip()
        if name and name not in out:
            out.append(name)
    return tuple(out)


def timetable_info_from_dict(raw: dict) -> TimetableInfo:
    """Build a `TimetableInfo` from a decoded JSON document."""

    try:
        max_groups = int(raw["max_groups"])
        daily_lesson_capacity = int(raw["daily_lesson_capacity"])
        raw_students = raw["students"]
        if not isinstance(raw_students, list):
            raise ValueError("'students' must be a list")

        students: List[StudentInfo] = []
        for s in raw_students:
            # A bare string would be split into characters.
            if not isinstance(s["subjects"], list):
                raise ValueError(f"'subjects' of student {s['id']!r} must be a list")
            students.append(StudentInfo(student_id=str(s["id"]).strip(), subjects=normalize_subjects(s["subjects"])))
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Invalid roster document: {exc!r}") from exc

    seen = set()
    for s in students:
        if s.student_id in seen:
            raise ValueError(f"Duplicate student id {s.student_id!r}")
        seen.add(s.student_id)

    return TimetableInfo(
        max_groups=max_groups,
        daily_lesson_capacity=daily_lesson_capacity,
        students=tuple(students),
    )


def load_timetable_info_from_json(path: str) -> TimetableInfo:
    """Load a `TimetableInfo` from a JSON file."""

    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    return timetable_info_from_dict(raw)


# ----------------------------
# Working state
# ----------------------------


@dataclass
class Group:
    slot: int
    student_idxs: List[int] = field(default_factory=list)


class PersonalSlots:
    """One student's view of the week: slot -> (subject, group_idx) or None."""

    def __init__(self, total_slots: int) -> None:
        self._slots: List[SlotEntry] = [None] * int(total_slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, slot: int) -> SlotEntry:
        return self._slots[slot]

    def is_free(self, slot: int) -> bool:
        return self._slots[slot] is None

    def first_free_slot(self) -> Optional[int]:
        # None only if the student has more subjects than the week has slots.
        return next(self.free_slots(), None)

    def free_slots(self, start: int = 0) -> Iterator[int]:
        for slot in range(int(start), len(self._slots)):
            if self._slots[slot] is None:
                yield slot

    def occupy(self, slot: int, subject: str, group_idx: int) -> None:
        self._slots[slot] = (subject, group_idx)

    def vacate(self, slot: int) -> None:
        self._slots[slot] = None

    def slot_of(self, subject: str) -> Optional[int]:
        for slot, entry in enumerate(self._slots):
            if entry is not None and entry[0] == subject:
                return slot
        return None

    def entries(self) -> List[Tuple[int, str, int]]:
        """Occupied slots as (slot, subject, group_idx), in slot order."""

        return [(slot, e[0], e[1]) for slot, e in enumerate(self._slots) if e is not None]

    def as_list(self) -> List[SlotEntry]:
        return list(self._slots)


class GroupRegistry:
    """subject -> groups, in creation order. Scoped to a single solve call."""

    def __init__(self) -> None:
        self._groups: Dict[str, List[Group]] = {}

    def subjects(self) -> List[str]:
        return list(self._groups.keys())

    def groups_of(self, subject: str) -> List[Group]:
        return self._groups.get(subject, [])

    def group_count(self, subject: str) -> int:
        return len(self.groups_of(subject))

    def find_group_with_free_slot(self, subject: str, personal: PersonalSlots) -> Optional[int]:
        for group_idx, group in enumerate(self.groups_of(subject)):
            if personal.is_free(group.slot):
                return group_idx
        return None

    def create_group(self, subject: str, slot: int) -> int:
        groups = self._groups.setdefault(subject, [])
        groups.append(Group(slot=int(slot)))
        return len(groups) - 1

    def relocate_group(self, subject: str, group_idx: int, new_slot: int) -> None:
        # Members' personal slots are migrated by the caller.
        self._groups[subject][group_idx].slot = int(new_slot)

    def attendance(self, subject: str, group_idx: int) -> int:
        groups = self.groups_of(subject)
        if 0 <= group_idx < len(groups):
            return len(groups[group_idx].student_idxs)
        return 0

    def add_member(self, subject: str, group_idx: int, student_idx: int) -> None:
        # A student never takes the same subject twice, so no duplicate check.
        self._groups[subject][group_idx].student_idxs.append(int(student_idx))

    def group_at(self, subject: str, slot: int) -> Optional[int]:
        for group_idx, group in enumerate(self.groups_of(subject)):
            if group.slot == slot:
                return group_idx
        return None

    def subjects_by_slot(self, total_slots: int) -> List[List[str]]:
        out: List[List[str]] = [[] for _ in range(int(total_slots))]
        for subject, groups in self._groups.items():
            for group in groups:
                out[group.slot].append(subject)
        return out


# ----------------------------
# Candidate ordering
# ----------------------------


def attendance(candidate: Candidate, registry: GroupRegistry) -> int:
    return registry.attendance(candidate[0], candidate[1])


def sort_by_ascending_attendance(candidates: Iterable[Candidate], registry: GroupRegistry) -> List[Candidate]:
    """Smallest groups first: they are the cheapest to move."""

    return sorted(candidates, key=lambda c: attendance(c, registry))


# ----------------------------
# Rebalancing
# ----------------------------


def _is_acceptable(
    candidate: Candidate,
    target_slot: int,
    subject: str,
    registry: GroupRegistry,
    students: List[PersonalSlots],
) -> bool:
    cand_subject, cand_idx = candidate
    group = registry.groups_of(cand_subject)[cand_idx]

    # Two groups of one subject may not share a slot.
    clash = registry.group_at(cand_subject, target_slot)
    if clash is not None and clash != cand_idx:
        return False

    # Swapping out another subject only helps if a group of `subject` meets in
    # the slot being vacated; opening a new group there would exceed the cap.
    if cand_subject != subject and registry.group_at(subject, group.slot) is None:
        return False

    return all(students[idx].is_free(target_slot) for idx in group.student_idxs)


def _move_group(
    candidate: Candidate,
    new_slot: int,
    registry: GroupRegistry,
    students: List[PersonalSlots],
) -> int:
    """Relocate a group and all of its members. Returns the slot it left."""

    cand_subject, cand_idx = candidate
    group = registry.groups_of(cand_subject)[cand_idx]
    old_slot = group.slot

    for idx in group.student_idxs:
        other = students[idx]
        other.vacate(old_slot)
        other.occupy(new_slot, cand_subject, cand_idx)

    registry.relocate_group(cand_subject, cand_idx, new_slot)
    return old_slot


def rebalance(
    subject: str,
    personal: PersonalSlots,
    registry: GroupRegistry,
    students: List[PersonalSlots],
) -> bool:
    """Free a slot for `subject` by moving one group to a free personal slot.

    Called when every group of `subject` clashes with the student's personal
    slots and the subject already has `max_groups` groups.

    Returns False if no free slot admits any candidate.
    """

    candidates: List[Candidate] = [(s, g) for (_slot, s, g) in personal.entries()]
    candidates.extend((subject, g) for g in range(registry.group_count(subject)))
    candidates = sort_by_ascending_attendance(candidates, registry)

    for target_slot in personal.free_slots():
        logger.debug("Trying slot %d for %r (%d candidates)", target_slot, subject, len(candidates))

        chosen = next(
            (c for c in candidates if _is_acceptable(c, target_slot, subject, registry, students)),
            None,
        )
        if chosen is None:
            continue

        cand_subject, cand_idx = chosen
        if cand_subject == subject:
            _move_group(chosen, target_slot, registry, students)
            personal.occupy(target_slot, subject, cand_idx)
        else:
            joined_idx = registry.group_at(subject, registry.groups_of(cand_subject)[cand_idx].slot)
            old_slot = _move_group(chosen, target_slot, registry, students)
            personal.vacate(old_slot)
            personal.occupy(target_slot, cand_subject, cand_idx)
            personal.occupy(old_slot, subject, joined_idx)

        logger.debug("Moved group %r #%d to slot %d to fit %r", cand_subject, cand_idx, target_slot, subject)
        return True

    return False


# ----------------------------
# Solve
# ----------------------------


def _place_subjects(
    subjects: Iterable[str],
    personal: PersonalSlots,
    registry: GroupRegistry,
    students: List[PersonalSlots],
    max_groups: int,
) -> bool:
    for subject in subjects:
        group_idx = registry.find_group_with_free_slot(subject, personal)
        if group_idx is not None:
            personal.occupy(registry.groups_of(subject)[group_idx].slot, subject, group_idx)
            continue

        if registry.group_count(subject) < max_groups:
            slot = personal.first_free_slot()
            personal.occupy(slot, subject, registry.create_group(subject, slot))
            continue

        if not rebalance(subject, personal, registry, students):
            return False

    return True


def make_global(registry: GroupRegistry, personal: PersonalSlots, student_idx: int) -> None:
    """Register the student as a member of every group in their personal slots."""

    for _slot, subject, group_idx in personal.entries():
        registry.add_member(subject, group_idx, student_idx)


def solve_timetable(info: TimetableInfo) -> TimetableResult:
    total_slots = info.total_slots
    max_groups = int(info.max_groups)

    registry = GroupRegistry()
    students: List[PersonalSlots] = []

    for student_idx, student in enumerate(info.students):
        personal = PersonalSlots(total_slots)
        if not _place_subjects(student.subjects, personal, registry, students, max_groups):
            logger.info("Unsolved: no group could be moved to fit student %r", student.student_id)
            return Unsolved()

        make_global(registry, personal, student_idx)
        students.append(personal)

    logger.info(
        "Solved timetable for %d students, %d subjects, %d slots",
        len(info.students),
        len(registry.subjects()),
        total_slots,
    )

    return Solved(
        subjects_by_slot=registry.subjects_by_slot(total_slots),
        slots_by_student_id={s.student_id: p.as_list() for s, p in zip(info.students, students)},
        daily_lesson_capacity=int(info.daily_lesson_capacity),
    )


# ----------------------------
# Metrics
# ----------------------------


def compute_metrics(info: TimetableInfo, result: TimetableResult) -> Dict[str, float]:
    metrics: Dict[str, float] = {
        "solved": float(isinstance(result, Solved)),
        "students": float(len(info.students)),
        "total_slots": float(info.total_slots),
    }
    if not isinstance(result, Solved):
        return metrics

    # (subject, group_idx) -> member count
    sizes: Dict[Tuple[str, int], int] = {}
    occupied = 0
    for slots in result.slots_by_student_id.values():
        for entry in slots:
            if entry is None:
                continue
            occupied += 1
            sizes[entry] = sizes.get(entry, 0) + 1

    groups_per_subject: Dict[str, int] = {}
    for (subject, _g) in sizes:
        groups_per_subject[subject] = groups_per_subject.get(subject, 0) + 1

    counts = list(sizes.values()) or [0]
    metrics.update(
        {
            "subjects": float(len(groups_per_subject)),
            "groups": float(len(sizes)),
            "max_groups_used": float(max(groups_per_subject.values() or [0])),
            "occupied_slots": float(occupied),
            "largest_group": float(max(counts)),
            "smallest_group": float(min(counts)),
        }
    )
    return metrics
