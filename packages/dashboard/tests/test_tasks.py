"""Tests for orbital_dashboard.tasks"""
import json
import threading

from orbital_dashboard.tasks import (
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    Task,
    TaskSummary,
    TaskTracker,
)


def create(tracker, subject, **extra):
    return tracker.process_tool_use("TaskCreate", json.dumps({"subject": subject, **extra}))


def update(tracker, task_id, **fields):
    return tracker.process_tool_use("TaskUpdate", json.dumps({"taskId": task_id, **fields}))


def todo_write(tracker, todos):
    return tracker.process_tool_use("TodoWrite", json.dumps({"todos": todos}))


class TestIsTaskTool:
    def test_task_tools(self):
        for name in ("TaskCreate", "TaskUpdate", "TodoWrite"):
            assert TaskTracker.is_task_tool(name)

    def test_other_tools(self):
        assert not TaskTracker.is_task_tool("Read")
        assert not TaskTracker.is_task_tool("")


class TestTaskCreate:
    def test_sequential_ids(self):
        tracker = TaskTracker()
        create(tracker, "first")
        tasks = create(tracker, "second", activeForm="Doing second")
        assert tasks == (
            Task(id="1", content="first", status=STATUS_PENDING),
            Task(id="2", content="second", status=STATUS_PENDING, active_form="Doing second"),
        )

    def test_empty_subject_ignored(self):
        tracker = TaskTracker()
        assert create(tracker, "") is None
        assert tracker.get_tasks() == ()

    def test_malformed_json_ignored(self):
        tracker = TaskTracker()
        assert tracker.process_tool_use("TaskCreate", "{not json") is None
        assert tracker.process_tool_use("TaskCreate", "[1, 2]") is None

    def test_unknown_tool(self):
        assert TaskTracker().process_tool_use("Read", '{"subject": "x"}') is None


class TestTaskUpdate:
    def test_status_change(self):
        tracker = TaskTracker()
        create(tracker, "a")
        tasks = update(tracker, "1", status=STATUS_IN_PROGRESS)
        assert tasks[0].status == STATUS_IN_PROGRESS
        assert tasks[0].content == "a"

    def test_subject_and_active_form(self):
        tracker = TaskTracker()
        create(tracker, "a")
        tasks = update(tracker, "1", subject="renamed", activeForm="Renaming")
        assert tasks[0] == Task(id="1", content="renamed", status=STATUS_PENDING, active_form="Renaming")

    def test_unknown_id(self):
        tracker = TaskTracker()
        create(tracker, "a")
        assert update(tracker, "9", status=STATUS_COMPLETED) is None

    def test_missing_id(self):
        tracker = TaskTracker()
        create(tracker, "a")
        assert tracker.process_tool_use("TaskUpdate", '{"status": "completed"}') is None

    def test_absent_fields_keep_values(self):
        tracker = TaskTracker()
        create(tracker, "a", activeForm="Doing a")
        tasks = update(tracker, "1")
        assert tasks[0] == Task(id="1", content="a", status=STATUS_PENDING, active_form="Doing a")

    def test_explicit_empty_fields_are_applied(self):
        tracker = TaskTracker()
        create(tracker, "a", activeForm="Doing a")
        tasks = update(tracker, "1", activeForm="")
        assert tasks[0] == Task(id="1", content="a", status=STATUS_PENDING, active_form="")
        tasks = update(tracker, "1", subject="", status="")
        assert tasks[0] == Task(id="1", content="", status="", active_form="")

    def test_null_fields_keep_values(self):
        tracker = TaskTracker()
        create(tracker, "a", activeForm="Doing a")
        tasks = update(tracker, "1", subject=None, activeForm=None)
        assert tasks[0] == Task(id="1", content="a", status=STATUS_PENDING, active_form="Doing a")

    def test_order_preserved(self):
        tracker = TaskTracker()
        for name in ("a", "b", "c"):
            create(tracker, name)
        tasks = update(tracker, "2", status=STATUS_COMPLETED)
        assert [t.id for t in tasks] == ["1", "2", "3"]


class TestTodoWrite:
    def test_replaces_list(self):
        tracker = TaskTracker()
        create(tracker, "old")
        tasks = todo_write(tracker, [
            {"content": "a", "status": "completed"},
            {"content": "b", "status": "in_progress", "activeForm": "Doing b"},
            {"content": "c"},
        ])
        assert [(t.id, t.content, t.status) for t in tasks] == [
            ("1", "a", STATUS_COMPLETED),
            ("2", "b", STATUS_IN_PROGRESS),
            ("3", "c", STATUS_PENDING),
        ]
        assert tasks[1].active_form == "Doing b"

    def test_empty_list_ignored(self):
        tracker = TaskTracker()
        create(tracker, "keep")
        assert todo_write(tracker, []) is None
        assert [t.content for t in tracker.get_tasks()] == ["keep"]

    def test_skipped_entries_leave_id_gaps(self):
        tracker = TaskTracker()
        tasks = todo_write(tracker, [{"content": "a"}, {"content": ""}, {"content": "c"}])
        assert [t.id for t in tasks] == ["1", "3"]
        tasks = create(tracker, "d")
        assert [t.id for t in tasks] == ["1", "3", "4"]


class TestSummaryAndClear:
    def test_summary(self):
        tracker = TaskTracker()
        todo_write(tracker, [
            {"content": "a", "status": "completed"},
            {"content": "b", "status": "in_progress"},
            {"content": "c", "status": "pending"},
            {"content": "d", "status": "pending"},
        ])
        assert tracker.get_summary() == TaskSummary(total=4, completed=1, in_progress=1, pending=2)

    def test_clear(self):
        tracker = TaskTracker()
        create(tracker, "a")
        tracker.clear()
        assert tracker.get_tasks() == ()
        assert tracker.get_summary() == TaskSummary(0, 0, 0, 0)

    def test_snapshots_are_immutable(self):
        tracker = TaskTracker()
        before = create(tracker, "a")
        update(tracker, "1", status=STATUS_COMPLETED)
        assert before[0].status == STATUS_PENDING


class TestConcurrency:
    def test_parallel_creates(self):
        tracker = TaskTracker()

        def worker(n):
            for i in range(50):
                create(tracker, f"w{n}-{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        tasks = tracker.get_tasks()
        assert len(tasks) == 200
        assert len({t.id for t in tasks}) == 200
