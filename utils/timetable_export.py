from __future__ import annotations

import io
import re
import zipfile
from dataclasses import dataclass
from typing import List, Optional, Sequence

import pandas as pd

from modules.timetabler import WEEK_DAYS, Solved, SlotEntry, TimetableResult


UNSOLVED_MESSAGE = "Unable to solve. Try adjusting variables!"


def unsolved_message() -> str:
    return UNSOLVED_MESSAGE


def slot_day(slot: int, daily_lesson_capacity: int) -> int:
    return int(slot) // int(daily_lesson_capacity)


def slot_position(slot: int, daily_lesson_capacity: int) -> int:
    return int(slot) % int(daily_lesson_capacity)


def slot_label(slot: int, daily_lesson_capacity: int) -> str:
    """Human label, e.g. slot 7 with 3 lessons a day -> 'Wednesday, Slot 2'."""

    day = WEEK_DAYS[slot_day(slot, daily_lesson_capacity)]
    return f"{day}, Slot {slot_position(slot, daily_lesson_capacity) + 1}"


def week_grid(cells: Sequence[str], daily_lesson_capacity: int) -> List[List[str]]:
    """Split a flat per-slot list into rows of days x columns of slots."""

    n = int(daily_lesson_capacity)
    table = [["" for _ in range(n)] for _ in range(len(WEEK_DAYS))]
    for slot, value in enumerate(cells):
        table[slot_day(slot, n)][slot_position(slot, n)] = value
    return table


def _entry_label(entry: SlotEntry) -> str:
    return "" if entry is None else entry[0]


def _timetable_df_from_table(*, slots_per_day: int, table: List[List[str]]) -> pd.DataFrame:
    columns = [f"Slot {i}" for i in range(1, int(slots_per_day) + 1)]
    df = pd.DataFrame(table, columns=columns)
    df.insert(0, "DAY", list(WEEK_DAYS))
    return df


def global_timetable_df(result: Solved) -> pd.DataFrame:
    """Which subjects are taught in each slot of the week."""

    cells = [", ".join(subjects) for subjects in result.subjects_by_slot]
    return _timetable_df_from_table(
        slots_per_day=result.daily_lesson_capacity,
        table=week_grid(cells, result.daily_lesson_capacity),
    )


def student_timetable_df(result: Solved, student_id: str) -> pd.DataFrame:
    """One student's week; raises KeyError for an unknown student."""

    cells = [_entry_label(e) for e in result.slots_by_student_id[student_id]]
    return _timetable_df_from_table(
        slots_per_day=result.daily_lesson_capacity,
        table=week_grid(cells, result.daily_lesson_capacity),
    )


def assignments_df(result: Solved) -> pd.DataFrame:
    """Long format: one row per (student, occupied slot)."""

    rows = []
    cap = result.daily_lesson_capacity
    for student_id, slots in result.slots_by_student_id.items():
        for slot, entry in enumerate(slots):
            if entry is None:
                continue
            rows.append(
                {
                    "student_id": student_id,
                    "day": WEEK_DAYS[slot_day(slot, cap)],
                    "slot": slot_position(slot, cap) + 1,
                    "subject": entry[0],
                    "group": entry[1] + 1,
                }
            )
    return pd.DataFrame(rows, columns=["student_id", "day", "slot", "subject", "group"])


def _safe_sheet_name(name: str) -> str:
    """Excel sheet names: max 31 chars, cannot contain: `: \\ / ? * [ ]`."""

    bad = [":", "\\", "/", "?", "*", "[", "]"]
    out = str(name or "Sheet")
    for b in bad:
        out = out.replace(b, "-")
    out = out.strip() or "Sheet"
    return out[:31]


def _safe_file_name(name: str) -> str:
    """Archive member names: letters, digits, `.`, `_` and `-` only."""

    out = re.sub(r"[^A-Za-z0-9._-]+", "_", str(name or "")).strip("._")
    return out or "student"


def timetable_workbook_bytes(result: Solved) -> bytes:
    """Excel workbook: a 'Global' sheet, an 'Assignments' sheet and one sheet per student."""

    # Pandas uses openpyxl to write .xlsx by default.
    out = io.BytesIO()

    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        global_timetable_df(result).to_excel(writer, sheet_name="Global", index=False)
        assignments_df(result).to_excel(writer, sheet_name="Assignments", index=False)

        used = {"Global", "Assignments"}
        for student_id in result.slots_by_student_id:
            sheet = _safe_sheet_name(f"Student-{student_id}")
            # Truncation can make two names collide.
            base, n = sheet, 2
            while sheet in used:
                suffix = f"~{n}"
                sheet = base[: 31 - len(suffix)] + suffix
                n += 1
            used.add(sheet)
            student_timetable_df(result, student_id).to_excel(writer, sheet_name=sheet, index=False)

    return out.getvalue()


def timetable_zip_bytes(result: Solved) -> bytes:
    """ZIP with the workbook, the global grid and one CSV timetable per student."""

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, mode="w", compression=zipfile.ZIP_DEFLATED) as z:
        z.writestr("timetable.xlsx", timetable_workbook_bytes(result))
        z.writestr("tables/global_timetable.csv", global_timetable_df(result).to_csv(index=False).encode("utf-8"))
        z.writestr("tables/assignments.csv", assignments_df(result).to_csv(index=False).encode("utf-8"))
        used: set[str] = set()
        for student_id in result.slots_by_student_id:
            # "Jane Doe" and "Jane_Doe" map to the same name.
            base = name = _safe_file_name(student_id)
            n = 2
            while name in used:
                name = f"{base}~{n}"
                n += 1
            used.add(name)
            df = student_timetable_df(result, student_id)
            z.writestr(f"timetables/students/{name}.csv", df.to_csv(index=False).encode("utf-8"))

    return buf.getvalue()


def render_result_markdown(result: TimetableResult, student_id: Optional[str] = None) -> str:
    """Markdown for the global grid (and optionally one student), or the retry prompt."""

    if not isinstance(result, Solved):
        return unsolved_message() + "\n"

    parts = ["## Global timetable", "", df_to_markdown(global_timetable_df(result))]
    if student_id is not None:
        parts += ["", f"## Student {student_id}", "", df_to_markdown(student_timetable_df(result, student_id))]
    return "\n".join(parts)


@dataclass(frozen=True)
class ImageExportOptions:
    title: Optional[str] = None
    font_size: int = 10
    cell_height: float = 0.35
    cell_width: float = 1.2


def df_to_markdown(df: pd.DataFrame) -> str:
    """Convert DataFrame to a GitHub-flavored Markdown table."""

    # pandas to_markdown requires tabulate in some versions; avoid extra dependency.
    cols = list(df.columns)
    rows = df.astype(str).values.tolist()

    def esc(s: str) -> str:
        return str(s).replace("\n", " ").replace("|", "\\|")

    header = "| " + " | ".join(esc(c) for c in cols) + " |"
    sep = "| " + " | ".join(["---"] * len(cols)) + " |"
    body = ["| " + " | ".join(esc(v) for v in r) + " |" for r in rows]
    return "\n".join([header, sep] + body) + "\n"


def df_to_png_bytes(df: pd.DataFrame, *, options: ImageExportOptions = ImageExportOptions()) -> bytes:
    """Render a timetable DataFrame as a PNG image (bytes).

    Uses matplotlib's table artist.
    """

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    nrows, ncols = df.shape

    fig_w = max(6.0, float(options.cell_width) * (ncols + 1))
    fig_h = max(2.0, float(options.cell_height) * (nrows + 2))

    fig, ax = plt.subplots(figsize=(fig_w, fig_h))
    ax.axis("off")

    if options.title:
        ax.set_title(options.title, fontsize=options.font_size + 2, pad=12)

    tbl = ax.table(
        cellText=df.values,
        colLabels=list(df.columns),
        cellLoc="center",
        loc="center",
    )

    tbl.auto_set_font_size(False)
    tbl.set_fontsize(options.font_size)
    tbl.scale(1.0, 1.4)

    for (r, _c), cell in tbl.get_celld().items():
        cell.set_linewidth(0.6)
        if r == 0:
            cell.set_facecolor("#f0f2f6")
            cell.set_text_props(weight="bold")

    buf = io.BytesIO()
    fig.tight_layout()
    fig.savefig(buf, format="png", dpi=200, bbox_inches="tight")
    plt.close(fig)
    return buf.getvalue()
