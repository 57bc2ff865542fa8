"""Tests for ScheduledTask, FunctionTask and TaskRegistry."""

import logging
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from src.scheduler.models import FunctionTask, ScheduledTask, TaskOutcome
from src.scheduler.registry import TaskRegistry, TaskSource


class _ReportTask(ScheduledTask):
    name = "Friday Report"
    schedule = "Friday@08:30"

    def __init__(self) -> None:
        self.runs = 0

    async def execute(self) -> None:
        self.runs += 1


# -- ScheduledTask -------------------------------------------------------------


def test_subclass_spec_is_parsed() -> None:
    task = _ReportTask()
    assert task.spec is not None
    assert task.spec.day_of_week == 4


def test_is_due_uses_schedule() -> None:
    task = _ReportTask()
    assert task.is_due(datetime(2024, 1, 5, 8, 30, tzinfo=UTC))
    assert not task.is_due(datetime(2024, 1, 8, 8, 30, tzinfo=UTC))


def test_malformed_task_is_never_due() -> None:
    task = FunctionTask("Broken", "Funday@9:30", AsyncMock())
    assert task.spec is None
    assert not task.is_due(datetime(2024, 1, 5, 9, 30, tzinfo=UTC))


def test_abstract_base_cannot_be_instantiated() -> None:
    with pytest.raises(TypeError):
        ScheduledTask()


async def test_function_task_runs_action() -> None:
    action = AsyncMock()
    task = FunctionTask("Ping", "Daily@00:00", action)
    await task.execute()
    action.assert_awaited_once_with()


def test_task_repr() -> None:
    assert repr(_ReportTask()) == "<_ReportTask 'Friday Report' 'Friday@08:30'>"


def test_task_outcome_success() -> None:
    assert TaskOutcome("a").success
    assert not TaskOutcome("a", error=RuntimeError("boom")).success


# -- TaskRegistry --------------------------------------------------------------


def test_registry_is_a_task_source() -> None:
    assert isinstance(TaskRegistry(), TaskSource)


def test_register_and_get() -> None:
    registry = TaskRegistry()
    task = _ReportTask()
    registry.register(task)
    assert registry.get("Friday Report") is task
    assert registry.names == ["Friday Report"]


def test_register_replaces_same_name(caplog: pytest.LogCaptureFixture) -> None:
    registry = TaskRegistry()
    first, second = _ReportTask(), _ReportTask()
    registry.register(first)
    with caplog.at_level(logging.WARNING, logger="src.scheduler.registry"):
        registry.register(second)
    assert registry.current_tasks() == [second]
    assert "Replacing scheduled task" in caplog.text


def test_register_warns_on_malformed_schedule(caplog: pytest.LogCaptureFixture) -> None:
    registry = TaskRegistry()
    with caplog.at_level(logging.WARNING, logger="src.scheduler.registry"):
        registry.register(FunctionTask("Broken", "Daily-08:30", AsyncMock()))
    assert "malformed schedule" in caplog.text
    # Still registered; it just never fires.
    assert registry.get("Broken") is not None


def test_task_decorator_registers_function() -> None:
    registry = TaskRegistry()

    @registry.task("Nightly", "Daily@02:15")
    async def nightly() -> None:
        pass

    task = registry.get("Nightly")
    assert isinstance(task, FunctionTask)
    assert task.schedule == "Daily@02:15"
    assert nightly.__name__ == "nightly"


def test_unregister() -> None:
    registry = TaskRegistry()
    registry.register(_ReportTask())
    assert registry.unregister("Friday Report") is True
    assert registry.unregister("Friday Report") is False
    assert registry.current_tasks() == []


def test_current_tasks_is_a_snapshot() -> None:
    registry = TaskRegistry()
    registry.register(_ReportTask())
    snapshot = registry.current_tasks()

    registry.register(FunctionTask("Later", "Daily@01:00", AsyncMock()))
    assert [t.name for t in snapshot] == ["Friday Report"]
    assert [t.name for t in registry.current_tasks()] == ["Friday Report", "Later"]
