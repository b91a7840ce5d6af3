"""Tests for logbook_sync.data.models — row and task dataclasses."""

from dataclasses import asdict

from logbook_sync.data.models import ResolvedTask, Subtask, TaskRow


def test_task_row_defaults():
    row = TaskRow(uuid="t1")
    assert row.title is None
    assert row.tag is None
    assert row.stop_date is None


def test_resolved_task_defaults():
    task = ResolvedTask(uuid="t1", title="Write doc")
    assert task.notes == ""
    assert task.area is None
    assert task.project is None
    assert task.heading is None
    assert task.tags == []
    assert task.subtasks == []
    assert task.cancelled is False


def test_resolved_task_lists_not_shared():
    a = ResolvedTask(uuid="a", title="A")
    b = ResolvedTask(uuid="b", title="B")
    a.tags.append("x")
    a.subtasks.append(Subtask(title="s"))
    assert b.tags == []
    assert b.subtasks == []


def test_distinct_tags_collapses_and_keeps_order():
    task = ResolvedTask(uuid="t1", title="T", tags=["q1", None, "urgent", "q1", ""])
    assert task.distinct_tags == ["q1", "urgent"]


def test_distinct_tags_empty_when_untagged():
    task = ResolvedTask(uuid="t1", title="T", tags=[None])
    assert task.distinct_tags == []


def test_resolved_task_serializable():
    task = ResolvedTask(
        uuid="t1", title="T", tags=["a"], subtasks=[Subtask(title="s", completed=True)],
    )
    d = asdict(task)
    assert d["subtasks"] == [{"title": "s", "completed": True}]
    assert d["cancelled"] is False
