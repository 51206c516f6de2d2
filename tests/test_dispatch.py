"""Unit tests for the main queue and cancellable delayed calls."""

from __future__ import annotations

import threading
import unittest

from wordy.dispatch import MainQueue


class TestMainQueue(unittest.TestCase):
    """Tests for MainQueue."""

    def setUp(self) -> None:
        self.main = MainQueue(name="test-main")
        self.main.start()

    def tearDown(self) -> None:
        self.main.stop()

    def _flush(self) -> None:
        done = threading.Event()
        self.main.post(done.set)
        self.assertTrue(done.wait(2.0))

    def test_posts_run_in_order_on_one_thread(self) -> None:
        seen = []
        threads = set()

        def record(i: int) -> None:
            seen.append(i)
            threads.add(threading.current_thread().name)

        for i in range(20):
            self.main.post(record, i)
        self._flush()
        self.assertEqual(seen, list(range(20)))
        self.assertEqual(threads, {"test-main"})

    def test_exception_does_not_stop_the_loop(self) -> None:
        def boom() -> None:
            raise RuntimeError("boom")

        seen = []
        with self.assertLogs("wordy.dispatch", level="ERROR"):
            self.main.post(boom)
            self.main.post(seen.append, 1)
            self._flush()
        self.assertEqual(seen, [1])

    def test_post_after_runs_later(self) -> None:
        fired = threading.Event()
        call = self.main.post_after(0.05, fired.set)
        self.assertTrue(fired.wait(2.0))
        self._flush()
        self.assertFalse(call.active)

    def test_cancelled_call_never_runs(self) -> None:
        fired = []
        call = self.main.post_after(0.05, fired.append, 1)
        call.cancel()
        self.assertFalse(call.active)
        threading.Event().wait(0.15)
        self._flush()
        self.assertEqual(fired, [])

    def test_cancel_after_expiry_on_queue_thread_wins(self) -> None:
        fired = []
        gate = threading.Event()
        release = threading.Event()

        def block() -> None:
            gate.set()
            release.wait(2.0)

        # Hold the queue thread so the timer's post lands behind us.
        self.main.post(block)
        self.assertTrue(gate.wait(2.0))
        call = self.main.post_after(0.0, fired.append, 1)
        threading.Event().wait(0.1)
        call.cancel()
        release.set()
        self._flush()
        self.assertEqual(fired, [])


if __name__ == "__main__":
    unittest.main()
