import uuid

from django.test import TestCase

from importer.models import ImportStatus
from importer.status import ProgressTracker

State = ImportStatus.State


class ProgressTrackerTests(TestCase):
    def setUp(self):
        self.tracker = ProgressTracker()

    def test_default_status_is_not_saved(self):
        status = self.tracker.get_status()

        self.assertEqual(status.state, State.NONE)
        self.assertEqual(status.progress, 0)
        self.assertIsNone(status.pk)
        self.assertFalse(ImportStatus.objects.exists())

    def test_update_status_merges(self):
        self.tracker.update_status(state=State.PROCESSING, progress=5, total=50)

        self.tracker.update_status(progress=15)

        status = self.tracker.get_status()
        self.assertEqual(status.state, State.PROCESSING)
        self.assertEqual(status.progress, 15)
        self.assertEqual(status.total, 50)
        self.assertEqual(ImportStatus.objects.count(), 1)

    def test_update_status_rejects_unknown_fields(self):
        with self.assertRaises(TypeError):
            self.tracker.update_status(colour="blue")

    def test_start_run(self):
        self.tracker.update_status(
            state=State.FAILED, progress=3, total=9, error="boom", completed_at=None
        )

        run_id = self.tracker.start_run(12)

        status = self.tracker.get_status()
        self.assertEqual(status.state, State.QUEUED)
        self.assertEqual((status.progress, status.total), (0, 12))
        self.assertIsNone(status.error)
        self.assertIsNotNone(status.started_at)
        self.assertEqual(status.run_id, run_id)
        self.assertTrue(self.tracker.is_current_run(run_id))
        self.assertTrue(self.tracker.is_current_run(str(run_id)))
        self.assertFalse(self.tracker.is_current_run(uuid.uuid4()))

    def test_advance(self):
        run_id = self.tracker.start_run(12)

        self.assertTrue(self.tracker.advance(run_id, 10))
        self.assertTrue(self.tracker.advance(run_id, 2))

        status = self.tracker.get_status()
        self.assertEqual(status.state, State.PROCESSING)
        self.assertEqual(status.progress, 12)
        self.assertEqual(status.total, 12)

    def test_advance_is_a_single_query(self):
        run_id = self.tracker.start_run(12)
        with self.assertNumQueries(1):
            self.tracker.advance(run_id, 10)

    def test_advance_keeps_final_states(self):
        for final_state in (State.FAILED, State.COMPLETED):
            with self.subTest(state=final_state):
                run_id = self.tracker.start_run(20)
                self.tracker.update_status(state=final_state)

                self.assertTrue(self.tracker.advance(run_id, 10))

                status = self.tracker.get_status()
                self.assertEqual(status.state, final_state)
                self.assertEqual(status.progress, 10)

    def test_stale_run_is_ignored(self):
        old_run = self.tracker.start_run(10)
        new_run = self.tracker.start_run(5)

        self.assertFalse(self.tracker.advance(old_run, 10))
        self.assertFalse(self.tracker.fail(old_run, "late failure"))
        self.assertFalse(self.tracker.complete(old_run))

        status = self.tracker.get_status()
        self.assertEqual(status.run_id, new_run)
        self.assertEqual(status.state, State.QUEUED)
        self.assertEqual(status.progress, 0)
        self.assertIsNone(status.error)

    def test_complete(self):
        run_id = self.tracker.start_run(1)

        self.assertTrue(self.tracker.complete(run_id))

        status = self.tracker.get_status()
        self.assertEqual(status.state, State.COMPLETED)
        self.assertIsNotNone(status.completed_at)

    def test_complete_does_not_override_failure(self):
        run_id = self.tracker.start_run(1)
        self.tracker.fail(run_id, "store unavailable")

        self.assertFalse(self.tracker.complete(run_id))

        status = self.tracker.get_status()
        self.assertEqual(status.state, State.FAILED)
        self.assertEqual(status.error, "store unavailable")
        self.assertIsNone(status.completed_at)

    def test_clear(self):
        run_id = self.tracker.start_run(12)
        self.tracker.advance(run_id, 10)
        self.tracker.fail(run_id, "boom")

        self.tracker.clear()

        status = self.tracker.get_status()
        self.assertEqual(status.state, State.NONE)
        self.assertEqual((status.progress, status.total), (0, 0))
        self.assertIsNone(status.error)
        self.assertIsNone(status.run_id)
        self.assertIsNone(status.started_at)

    def test_clear_without_any_run(self):
        self.tracker.clear()
        self.assertEqual(self.tracker.get_status().state, State.NONE)
