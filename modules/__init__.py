"""Scheduling problem modules (weekly subject-group timetabling)."""

from .timetabler import (
	DAYS_PER_WEEK,
	WEEK_DAYS,
	GroupRegistry,
	PersonalSlots,
	Solved,
	StudentInfo,
	TimetableInfo,
	TimetableResult,
	Unsolved,
	compute_metrics,
	load_timetable_info_from_json,
	normalize_subjects,
	solve_timetable,
	timetable_info_from_dict,
)

__all__ = [
	"DAYS_PER_WEEK",
	"WEEK_DAYS",
	"GroupRegistry",
	"PersonalSlots",
	"Solved",
	"StudentInfo",
	"TimetableInfo",
	"TimetableResult",
	"Unsolved",
	"compute_metrics",
	"load_timetable_info_from_json",
	"normalize_subjects",
	"solve_timetable",
	"timetable_info_from_dict",
]
