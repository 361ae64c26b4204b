#!/usr/bin/env python3
"""Unit tests for the maintenance task scheduler"""

import threading
import unittest

from adaptcache.cache_engine.scheduler import MaintenanceScheduler


class TestMaintenanceScheduler(unittest.TestCase):
    """Test task registration, execution and timer lifecycle"""

    def setUp(self):
        self.scheduler = MaintenanceScheduler('test')

    def tearDown(self):
        self.scheduler.shutdown()

    def test_add_task_validation(self):
        self.scheduler.add_task('sweep', 10, lambda: None)
        with self.assertRaises(ValueError):
            self.scheduler.add_task('sweep', 10, lambda: None)
        for interval in (0, -1):
            with self.subTest(interval=interval):
                with self.assertRaises(ValueError):
                    self.scheduler.add_task(f'task{interval}', interval, lambda: None)
        self.assertEqual(self.scheduler.task_names, ['sweep'])

    def test_run_now(self):
        calls = []
        self.scheduler.add_task('sweep', 10, lambda: calls.append(1))
        self.assertTrue(self.scheduler.run_now('sweep'))
        self.assertEqual(calls, [1])
        self.assertEqual(self.scheduler.tasks['sweep'].runs, 1)

    def test_run_now_unknown_task(self):
        with self.assertRaises(KeyError):
            self.scheduler.run_now('missing')

    def test_failures_are_counted_not_raised(self):
        def broken():
            raise RuntimeError("boom")

        self.scheduler.add_task('broken', 10, broken)
        with self.assertLogs('adaptcache', level='ERROR'):
            self.assertFalse(self.scheduler.run_now('broken'))

        task = self.scheduler.tasks['broken']
        self.assertEqual(task.failures, 1)
        self.assertEqual(task.runs, 0)
        self.assertEqual(task.last_error, 'boom')
        self.assertEqual(self.scheduler.to_dict()['tasks']['broken']['failures'], 1)

    def test_timer_reschedules_after_failure(self):
        calls = []
        done = threading.Event()

        def flaky():
            calls.append(1)
            if len(calls) >= 2:
                done.set()
            raise RuntimeError("still failing")

        self.scheduler.add_task('flaky', 0.01, flaky)
        with self.assertLogs('adaptcache', level='ERROR'):
            self.scheduler.start()
            self.assertTrue(done.wait(5))
            self.scheduler.shutdown()

        self.assertGreaterEqual(len(calls), 2)

    def test_start_and_shutdown(self):
        ran = threading.Event()
        self.scheduler.add_task('tick', 0.01, ran.set)

        self.scheduler.start()
        self.assertTrue(self.scheduler.running)
        self.assertTrue(ran.wait(5))

        self.scheduler.shutdown()
        self.assertFalse(self.scheduler.running)
        self.assertIsNone(self.scheduler.tasks['tick'].timer)
        self.assertFalse(self.scheduler.to_dict()['running'])

    def test_shutdown_before_start(self):
        self.scheduler.add_task('idle', 10, lambda: None)
        self.scheduler.shutdown()
        self.assertFalse(self.scheduler.running)


if __name__ == '__main__':
    unittest.main()
