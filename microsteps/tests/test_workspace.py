from __future__ import annotations

import unittest

from microsteps.db import StateDB
from microsteps.errors import ValidationError
from microsteps.exporting import export_json, read_export
from microsteps.sessions import SessionTracker
from microsteps.tests.test_helpers import fake_clock, local_tmp_dir, seeded_ids
from microsteps.workspace import Workspace


class TestSessionTracker(unittest.TestCase):
    def test_session_lifecycle(self) -> None:
        clock = fake_clock()
        tracker = SessionTracker(clock=clock, ids=seeded_ids(clock))

        with self.assertRaises(ValidationError):
            tracker.start_session("task-1", "step-1", 0)

        session_id = tracker.start_session("task-1", "step-1", 2)
        self.assertEqual(tracker.current_session_id, session_id)
        open_session = tracker.open_session("task-1")
        assert open_session is not None
        self.assertEqual(open_session.id, session_id)

        tracker.mark_stuck_used(session_id)
        clock.advance(90)
        ended = tracker.end_session(session_id, completed=True)
        assert ended is not None

        self.assertTrue(ended.completed)
        self.assertTrue(ended.stuck_used)
        self.assertEqual(ended.ended_at - ended.started_at, 90_000)  # type: ignore[operator]
        self.assertIsNone(tracker.current_session_id)
        self.assertIsNone(tracker.open_session("task-1"))
        self.assertIsNone(tracker.end_session("missing", completed=False))


class TestWorkspace(unittest.TestCase):
    def _workspace(self, db: StateDB | None = None) -> Workspace:
        clock = fake_clock()
        return Workspace(db=db, clock=clock, ids=seeded_ids(clock))

    def test_delete_task_cascades(self) -> None:
        workspace = self._workspace()
        with workspace.transaction():
            keep = workspace.store.create_task_from_steps("keep", "work", [{"text": "a"}])
            drop = workspace.store.create_task_from_template("morning-prep")
            drop_task = workspace.store.get_task(drop)
            assert drop_task is not None
            workspace.sessions.start_session(drop, drop_task.steps[0].id, 2)
            workspace.sessions.start_session(keep, "x", 2)
            workspace.stats.increment_stuck_count(drop)

        self.assertTrue(workspace.delete_task(drop))

        exported = workspace.export_data()
        self.assertEqual([task["id"] for task in exported["tasks"]], [keep])
        self.assertTrue(all(step["task_id"] == keep for step in exported["steps"]))
        self.assertEqual([item["task_id"] for item in exported["sessions"]], [keep])
        self.assertEqual(exported["stats"], [])

    def test_export_shape_is_flat(self) -> None:
        workspace = self._workspace()
        with workspace.transaction():
            task_id = workspace.store.create_task_from_template("morning-prep")

        exported = workspace.export_data()
        self.assertEqual(set(exported), {"tasks", "steps", "sessions", "stats"})
        self.assertNotIn("steps", exported["tasks"][0])
        self.assertEqual(len(exported["steps"]), 5)
        self.assertEqual({step["task_id"] for step in exported["steps"]}, {task_id})

    def test_state_survives_restart(self) -> None:
        with local_tmp_dir() as tmp:
            db = StateDB(tmp / "microsteps.sqlite")
            first = self._workspace(db)
            with first.transaction():
                task_id = first.store.create_task_from_template("morning-prep")
                first.store.mark_step_done()
                task = first.store.get_task(task_id)
                assert task is not None
                first.sessions.start_session(task_id, task.steps[1].id, 2)

            second = self._workspace(StateDB(tmp / "microsteps.sqlite"))
            loaded = second.store.get_task(task_id)
            assert loaded is not None

            self.assertEqual(second.store.active_task_id, task_id)
            self.assertEqual(second.store.last_created_task_id, task_id)
            self.assertEqual([step.status for step in loaded.steps][:2], ["done", "doing"])
            self.assertEqual(loaded.active_step_id, loaded.steps[1].id)
            self.assertEqual(second.sessions.current_session_id, first.sessions.current_session_id)
            self.assertEqual(second.state_document()["currentStepId"], loaded.steps[1].id)

    def test_load_drops_orphans_and_rejects_malformed(self) -> None:
        workspace = self._workspace()
        document = {
            "tasks": [{"id": "task-1", "title": "t", "category": "work", "createdAt": 1}],
            "steps": [
                {"id": "s2", "task_id": "task-1", "text": "b", "duration_min": 1, "status": "todo", "order": 1},
                {"id": "s1", "task_id": "task-1", "text": "a", "duration_min": 1, "status": "todo", "order": 0},
            ],
            "sessions": [
                {"id": "x1", "task_id": "gone", "step_id": "s1", "timer_min": 2, "started_at": 1},
            ],
            "stats": [{"task_id": "gone", "stuck_count": 1}],
        }
        workspace.load_data(document)

        task = workspace.store.get_task("task-1")
        assert task is not None
        self.assertEqual([step.id for step in task.steps], ["s1", "s2"])
        self.assertEqual(task.steps[0].status, "doing")
        self.assertEqual(workspace.sessions.all(), [])
        self.assertEqual(workspace.stats.all(), [])

        with self.assertRaises(ValidationError):
            workspace.load_data({"tasks": "nope"})
        with self.assertRaises(ValidationError):
            workspace.load_data({"tasks": [{"title": "no id"}]})

    def test_load_rejects_out_of_domain_values(self) -> None:
        workspace = self._workspace()
        with workspace.transaction():
            workspace.store.create_task_from_template("morning-prep")
        before = workspace.export_data()

        def document(category: str = "work", status: str = "todo", duration: object = 2) -> dict:
            return {
                "tasks": [{"id": "task-1", "title": "t", "category": category, "createdAt": 1}],
                "steps": [
                    {"id": "s1", "task_id": "task-1", "text": "a", "duration_min": duration, "status": status},
                ],
            }

        for bad in (
            document(category="chores"),
            document(status="bogus"),
            document(duration=0),
            document(duration=-4),
            document(duration=float("inf")),
            document(duration="nan"),
        ):
            with self.assertRaises(ValidationError):
                workspace.load_data(bad)
            self.assertEqual(workspace.export_data(), before)

    def test_invalid_persisted_blob_is_rejected(self) -> None:
        with local_tmp_dir() as tmp:
            db = StateDB(tmp / "microsteps.sqlite")
            db.save_blob(
                {
                    "tasks": [{"id": "task-1", "title": "t", "category": "work", "createdAt": 1}],
                    "steps": [{"id": "s1", "task_id": "task-1", "text": "a", "duration_min": 1, "status": "paused"}],
                    "sessions": [],
                    "stats": [],
                }
            )
            with self.assertRaises(ValidationError):
                self._workspace(db)

    def test_export_import_round_trip(self) -> None:
        source = self._workspace()
        with source.transaction():
            task_id = source.store.create_task_from_template("morning-prep")
            source.store.mark_step_done()
            source.stats.increment_stuck_count(task_id)
        exported = source.export_data()

        target = self._workspace()
        target.load_data(exported)

        self.assertEqual(target.export_data(), exported)

    def test_delete_all_data_clears_blob(self) -> None:
        with local_tmp_dir() as tmp:
            db = StateDB(tmp / "microsteps.sqlite")
            workspace = self._workspace(db)
            with workspace.transaction():
                workspace.store.create_task_from_template("morning-prep")
            self.assertIsNotNone(db.load_blob())

            workspace.delete_all_data()

            self.assertIsNone(db.load_blob())
            self.assertEqual(workspace.export_data()["tasks"], [])

    def test_export_json_file(self) -> None:
        with local_tmp_dir() as tmp:
            workspace = self._workspace()
            with workspace.transaction():
                workspace.store.create_task_from_template("morning-prep")

            path = export_json(workspace, tmp / "out")

            self.assertTrue(path.exists())
            self.assertEqual(read_export(path), workspace.export_data())


if __name__ == "__main__":
    unittest.main()
