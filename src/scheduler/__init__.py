"""Minute-tick task scheduler."""

from src.scheduler.engine import SchedulerEngine, SchedulerState
from src.scheduler.models import FunctionTask, ScheduledTask, TaskOutcome
from src.scheduler.registry import TaskRegistry, TaskSource
from src.scheduler.schedule import ScheduleSpec, is_due, parse_schedule

__all__ = [
    "FunctionTask",
    "ScheduleSpec",
    "ScheduledTask",
    "SchedulerEngine",
    "SchedulerState",
    "TaskOutcome",
    "TaskRegistry",
    "TaskSource",
    "is_due",
    "parse_schedule",
]
