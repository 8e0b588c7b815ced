"""Main Streamlit app entrypoint.

Run:
    streamlit run ui/app.py

Three screens, kept in `st.session_state` only (nothing is persisted):
general configuration -> student configuration -> result.
"""

from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

# Ensure project root is on PYTHONPATH when Streamlit runs this file
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.timetabler import Solved, compute_metrics, solve_timetable
from ui.utils.roster import RosterBuilder
from ui.utils.validators import parse_positive_int
from utils.logging_config import setup_logging
from utils.timetable_export import (
    ImageExportOptions,
    df_to_png_bytes,
    global_timetable_df,
    student_timetable_df,
    timetable_workbook_bytes,
    timetable_zip_bytes,
    unsolved_message,
)


SCREEN_GENERAL = "general"
SCREEN_STUDENTS = "students"
SCREEN_RESULT = "result"


def _state() -> dict:
    ss = st.session_state
    if "roster" not in ss:
        ss["roster"] = RosterBuilder()
    if "screen" not in ss:
        ss["screen"] = SCREEN_GENERAL
    return ss


def _general_screen(ss) -> None:
    st.title("General Configuration")
    roster: RosterBuilder = ss["roster"]

    with st.form("general_form"):
        max_groups_txt = st.text_input("Max groups", value=str(roster.max_groups or ""))
        capacity_txt = st.text_input("Daily lesson capacity", value=str(roster.daily_lesson_capacity or ""))
        submitted = st.form_submit_button("Next")

    if not submitted:
        return

    max_groups, err1 = parse_positive_int(max_groups_txt, "Max groups")
    capacity, err2 = parse_positive_int(capacity_txt, "Daily lesson capacity")
    if max_groups is None or capacity is None:
        st.error(err1 or err2)
        return

    ok, msg = roster.set_general_config(max_groups=max_groups, daily_lesson_capacity=capacity)
    if not ok:
        st.error(msg)
        return
    ss["screen"] = SCREEN_STUDENTS
    st.rerun()


def _students_screen(ss) -> None:
    st.title("Student Configuration")
    roster: RosterBuilder = ss["roster"]

    with st.form("add_student_form", clear_on_submit=True):
        c1, c2 = st.columns([1, 2])
        student_id = c1.text_input("Student ID")
        subjects_txt = c2.text_input("Subjects (comma separated)")
        if st.form_submit_button("Add student"):
            ok, msg = roster.add_student(student_id, subjects_txt)
            if ok:
                st.success(f"Added {student_id.strip()}")
            else:
                st.error(msg)

    if not roster.student_ids:
        st.info("Add at least one student to continue.")
        return

    selected = st.selectbox("Select student", options=roster.student_ids)
    st.write("Subjects: " + ", ".join(roster.subjects_of(selected)))

    c_del, c_submit, c_back = st.columns(3)
    if c_del.button("Delete"):
        roster.remove_student(selected)
        st.rerun()

    if c_back.button("Back"):
        ss["screen"] = SCREEN_GENERAL
        st.rerun()

    if c_submit.button("Submit", type="primary"):
        errors = roster.validate()
        if errors:
            for e in errors:
                st.error(e)
            return
        info = roster.build()
        ss["info"] = info
        ss["result"] = solve_timetable(info)
        ss["screen"] = SCREEN_RESULT
        st.rerun()


def _result_screen(ss) -> None:
    st.title("Result")
    result = ss.get("result")
    info = ss.get("info")

    if not isinstance(result, Solved):
        st.warning(unsolved_message())
        if st.button("Back to students"):
            ss["screen"] = SCREEN_STUDENTS
            st.rerun()
        return

    metrics = compute_metrics(info, result)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Students", int(metrics["students"]))
    c2.metric("Subjects", int(metrics["subjects"]))
    c3.metric("Groups", int(metrics["groups"]))
    c4.metric("Largest group", int(metrics["largest_group"]))

    st.subheader("Global timetable")
    st.dataframe(global_timetable_df(result), use_container_width=True, hide_index=True)

    selected = st.selectbox("Select student", options=list(result.slots_by_student_id.keys()))
    if selected:
        st.dataframe(student_timetable_df(result, selected), use_container_width=True, hide_index=True)

    d1, d2, d3 = st.columns(3)
    d1.download_button(
        "Download Excel",
        data=timetable_workbook_bytes(result),
        file_name="timetable.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    d2.download_button("Download ZIP", data=timetable_zip_bytes(result), file_name="timetable.zip", mime="application/zip")
    png_title = f"Student {selected}" if selected else "Global timetable"
    png_df = student_timetable_df(result, selected) if selected else global_timetable_df(result)
    d3.download_button(
        "Download PNG",
        data=df_to_png_bytes(png_df, options=ImageExportOptions(title=png_title)),
        file_name="timetable.png",
        mime="image/png",
    )

    if st.button("Edit students"):
        ss["screen"] = SCREEN_STUDENTS
        st.rerun()


def main() -> None:
    setup_logging()
    st.set_page_config(page_title="Timetabler", page_icon="🗓️", layout="wide")

    ss = _state()
    screen = ss["screen"]
    if screen == SCREEN_GENERAL:
        _general_screen(ss)
    elif screen == SCREEN_STUDENTS:
        _students_screen(ss)
    else:
        _result_screen(ss)


if __name__ == "__main__":
    main()
