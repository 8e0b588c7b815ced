"""Demo runner: build a subject-group timetable from a JSON roster.

This is meant for quick validation and for demos.

Usage:
    python scripts/run_timetable_demo.py [path/to/roster.json]

Set TIMETABLER_LOG_LEVEL=DEBUG to watch the rebalancing search.
"""

from __future__ import annotations

from pathlib import Path
import sys

# Ensure project root is on PYTHONPATH when running as a script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.timetabler import Solved, compute_metrics, load_timetable_info_from_json, solve_timetable
from ui.utils.roster import RosterBuilder
from utils.logging_config import setup_logging
from utils.timetable_export import global_timetable_df, student_timetable_df, unsolved_message


def main() -> None:
    setup_logging()

    roster_path = Path(sys.argv[1]) if len(sys.argv) > 1 else ROOT / "data" / "sample_roster.json"

    # Same checks the app runs before submitting.
    builder = RosterBuilder.from_timetable_info(load_timetable_info_from_json(str(roster_path)))
    errors = builder.validate()
    if errors:
        raise SystemExit("Invalid roster:\n" + "\n".join(errors))
    info = builder.build()

    result = solve_timetable(info)

    if isinstance(result, Solved):
        print("\n=== Global timetable ===")
        print(global_timetable_df(result).to_string(index=False))

        for student in info.students:
            print(f"\n=== {student.student_id} ===")
            print(student_timetable_df(result, student.student_id).to_string(index=False))
    else:
        print(unsolved_message())

    print("\n=== Metrics ===")
    for k, v in compute_metrics(info, result).items():
        print(f"{k}: {v}")


if __name__ == "__main__":
    main()
