import random
import sys
from pathlib import Path

# Ensure project root is on PYTHONPATH
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.timetabler import (
    Solved,
    StudentInfo,
    TimetableInfo,
    Unsolved,
    compute_metrics,
    solve_timetable,
)


def _info(max_groups, capacity, roster):
    students = tuple(StudentInfo(student_id=sid, subjects=tuple(subjects)) for sid, subjects in roster)
    return TimetableInfo(max_groups=max_groups, daily_lesson_capacity=capacity, students=students)


def _assert_consistent(info: TimetableInfo, result: Solved) -> None:
    total_slots = info.daily_lesson_capacity * 5
    group_slot = {}

    for student in info.students:
        slots = result.slots_by_student_id[student.student_id]
        assert len(slots) == total_slots

        entries = [e for e in slots if e is not None]
        assert len(entries) == len(student.subjects)
        assert sorted(e[0] for e in entries) == sorted(student.subjects)

        for slot, entry in enumerate(slots):
            if entry is None:
                continue
            # Every member of a group sees it in the same slot.
            assert group_slot.setdefault(entry, slot) == slot

    groups_per_subject = {}
    for (subject, g), slot in group_slot.items():
        groups_per_subject.setdefault(subject, []).append(slot)
        assert 0 <= g < info.max_groups
    for subject, slots in groups_per_subject.items():
        assert len(slots) <= info.max_groups
        assert len(set(slots)) == len(slots), f"two {subject} groups share a slot"

    derived = [[] for _ in range(total_slots)]
    for (subject, _g), slot in group_slot.items():
        derived[slot].append(subject)
    assert [sorted(x) for x in derived] == [sorted(x) for x in result.subjects_by_slot]


def test_single_student_single_subject():
    info = _info(1, 1, [("S1", ["Maths"])])

    result = solve_timetable(info)

    assert isinstance(result, Solved)
    assert result.slots_by_student_id["S1"] == [("Maths", 0), None, None, None, None]
    assert result.subjects_by_slot == [["Maths"], [], [], [], []]


def test_two_students_share_one_group():
    info = _info(1, 1, [("S1", ["Math"]), ("S2", ["Math"])])

    result = solve_timetable(info)

    assert isinstance(result, Solved)
    assert result.slots_by_student_id["S1"] == result.slots_by_student_id["S2"]
    assert result.slots_by_student_id["S1"][0] == ("Math", 0)
    assert result.subjects_by_slot[0] == ["Math"]


def test_new_group_opens_below_capacity():
    # S2 already has Physics in slot 0, so Maths needs a second group.
    info = _info(2, 1, [("S1", ["Maths"]), ("S2", ["Physics", "Maths"])])

    result = solve_timetable(info)

    assert isinstance(result, Solved)
    assert result.slots_by_student_id["S2"][:2] == [("Physics", 0), ("Maths", 1)]
    assert result.subjects_by_slot[0] == ["Maths", "Physics"]
    assert result.subjects_by_slot[1] == ["Maths"]
    _assert_consistent(info, result)


def test_rebalance_moves_smallest_group_and_reuses_its_slot():
    info = _info(
        1,
        1,
        [
            ("S0", ["A"]),
            ("S1", ["A", "B"]),
            ("S2", ["C"]),
            ("S3", ["C", "A"]),
        ],
    )

    result = solve_timetable(info)

    assert isinstance(result, Solved)
    slots = result.slots_by_student_id
    # C (2 members) is smaller than A (3 members) so C moves to slot 1.
    assert slots["S2"] == [None, ("C", 0), None, None, None]
    # S3 takes A in the slot C left behind.
    assert slots["S3"] == [("A", 0), ("C", 0), None, None, None]
    # A's members are untouched.
    assert slots["S0"][0] == ("A", 0)
    assert slots["S1"][:2] == [("A", 0), ("B", 0)]
    assert result.subjects_by_slot[0] == ["A"]
    assert sorted(result.subjects_by_slot[1]) == ["B", "C"]
    _assert_consistent(info, result)


def test_rebalance_moves_group_of_requested_subject():
    info = _info(
        1,
        1,
        [
            ("S0", ["A"]),
            ("S1", ["B"]),
            ("S2", ["B"]),
            ("S3", ["B", "A"]),
        ],
    )

    result = solve_timetable(info)

    assert isinstance(result, Solved)
    slots = result.slots_by_student_id
    # A (1 member) is the cheapest move: it goes to S3's first free slot.
    assert slots["S0"] == [None, ("A", 0), None, None, None]
    assert slots["S3"] == [("B", 0), ("A", 0), None, None, None]
    assert result.subjects_by_slot[:2] == [["B"], ["A"]]
    _assert_consistent(info, result)


def test_rebalance_advances_to_next_free_slot():
    info = _info(
        1,
        1,
        [
            ("S0", ["A", "B"]),
            ("S1", ["C", "X"]),
            ("S2", ["C", "A"]),
        ],
    )

    result = solve_timetable(info)

    assert isinstance(result, Solved)
    slots = result.slots_by_student_id
    # Slot 1 is blocked for both S0 and S1, slot 2 works for C.
    assert slots["S1"] == [None, ("X", 0), ("C", 0), None, None]
    assert slots["S2"] == [("A", 0), None, ("C", 0), None, None]
    _assert_consistent(info, result)


def test_empty_group_of_other_subject_is_not_swapped_out():
    info = _info(
        1,
        1,
        [
            ("S0", ["A"]),
            ("S1", ["A"]),
            ("S2", ["B"]),
            ("S2b", ["B"]),
            ("S3", ["B", "Z", "A"]),
        ],
    )

    result = solve_timetable(info)

    assert isinstance(result, Solved)
    slots = result.slots_by_student_id
    # Z has no members yet and sorts first, but no A group meets at its slot.
    # B is moved instead and S3 joins the A group left behind at slot 0.
    assert slots["S3"] == [("A", 0), ("Z", 0), ("B", 0), None, None]
    assert slots["S2"] == [None, None, ("B", 0), None, None]
    assert slots["S0"] == [("A", 0), None, None, None, None]
    assert result.subjects_by_slot == [["A"], ["Z"], ["B"], [], []]
    _assert_consistent(info, result)


def test_only_other_subject_without_shared_slot_gives_unsolved():
    info = _info(
        1,
        1,
        [
            ("S0", ["A", "C", "D", "E", "F"]),
            ("S2", ["B", "P", "Q", "R", "T"]),
            ("S3", ["B", "Z", "A"]),
        ],
    )

    # Moving Z would free slot 1, but S3 could only take A there by opening
    # a second A group.
    assert isinstance(solve_timetable(info), Unsolved)


def test_unsolvable_roster_returns_unsolved():
    info = _info(
        1,
        1,
        [
            ("S0", ["A", "B", "C", "D", "E"]),
            ("S1", ["F", "G", "H", "I", "J"]),
            ("S2", ["F", "A"]),
        ],
    )

    result = solve_timetable(info)

    assert isinstance(result, Unsolved)
    metrics = compute_metrics(info, result)
    assert metrics["solved"] == 0.0


def test_failure_of_one_student_discards_everything():
    ok = _info(1, 1, [("S0", ["A", "B", "C", "D", "E"]), ("S1", ["F", "G", "H", "I", "J"])])
    assert isinstance(solve_timetable(ok), Solved)

    bad = _info(1, 1, [("S0", ["A", "B", "C", "D", "E"]), ("S1", ["F", "G", "H", "I", "J"]), ("S2", ["F", "A"])])
    assert isinstance(solve_timetable(bad), Unsolved)


def test_repeated_solves_do_not_share_state():
    info = _info(1, 1, [("S0", ["A"]), ("S1", ["B", "A"])])

    first = solve_timetable(info)
    second = solve_timetable(info)

    assert first == second


def test_full_week_for_one_student():
    info = _info(1, 2, [("S1", [f"Sub{i}" for i in range(10)])])

    result = solve_timetable(info)

    assert isinstance(result, Solved)
    assert [e[0] for e in result.slots_by_student_id["S1"]] == [f"Sub{i}" for i in range(10)]


def test_random_rosters_respect_group_invariants():
    pool = ["Maths", "Physics", "Chemistry", "Biology", "English", "History", "Art"]
    solved = 0

    for seed in range(60):
        rng = random.Random(seed)
        capacity = rng.randint(1, 3)
        max_groups = rng.randint(1, 3)
        roster = []
        for i in range(rng.randint(1, 12)):
            k = rng.randint(1, min(len(pool), capacity * 5))
            roster.append((f"S{i:02d}", rng.sample(pool, k)))
        info = _info(max_groups, capacity, roster)

        result = solve_timetable(info)

        assert isinstance(result, (Solved, Unsolved))
        if isinstance(result, Solved):
            solved += 1
            _assert_consistent(info, result)

    assert solved > 0


def test_metrics_for_solved_timetable():
    info = _info(1, 1, [("S0", ["A"]), ("S1", ["A", "B"]), ("S2", ["C"]), ("S3", ["C", "A"])])

    metrics = compute_metrics(info, solve_timetable(info))

    assert metrics["solved"] == 1.0
    assert metrics["students"] == 4.0
    assert metrics["subjects"] == 3.0
    assert metrics["groups"] == 3.0
    assert metrics["max_groups_used"] == 1.0
    assert metrics["occupied_slots"] == 6.0
    assert metrics["largest_group"] == 3.0
    assert metrics["smallest_group"] == 1.0
    assert metrics["total_slots"] == 5.0
