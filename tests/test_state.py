"""Tests for the status store and command mailbox."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

from devrelay.models import UNKNOWN_STATUS, Command, DeviceStatus, Signal
from devrelay.state import CommandMailbox, StatusStore

from conftest import FIXED_NOW


class TestStatusStore:
    def test_starts_unknown(self):
        store = StatusStore()
        status = store.get()
        assert status == UNKNOWN_STATUS
        assert status.sql is Signal.UNKNOWN
        assert status.dql is Signal.UNKNOWN
        assert status.last_update is None

    def test_set_replaces_wholesale(self):
        store = StatusStore()
        store.set(DeviceStatus(Signal.HIGH, Signal.LOW, FIXED_NOW))
        store.set(DeviceStatus(Signal.LOW, Signal.LOW, FIXED_NOW))
        assert store.get() == DeviceStatus(Signal.LOW, Signal.LOW, FIXED_NOW)

    def test_concurrent_writers_leave_a_whole_status(self):
        store = StatusStore()
        candidates = [
            DeviceStatus(Signal.HIGH, Signal.HIGH, FIXED_NOW),
            DeviceStatus(Signal.LOW, Signal.LOW, FIXED_NOW),
        ]
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(store.set, candidates * 50))
        assert store.get() in candidates


class TestCommandMailbox:
    def test_empty_mailbox(self):
        assert CommandMailbox().take_and_clear() is None

    def test_last_write_wins(self):
        box = CommandMailbox()
        box.enqueue(Command.R1ON)
        box.enqueue(Command.R2ON)
        assert box.take_and_clear() is Command.R2ON
        assert box.take_and_clear() is None

    def test_enqueue_returns_replaced(self):
        box = CommandMailbox()
        assert box.enqueue(Command.R1ON) is None
        assert box.enqueue(Command.R2ON) is Command.R1ON

    def test_peek_does_not_consume(self):
        box = CommandMailbox()
        box.enqueue(Command.R1ON)
        assert box.peek() is Command.R1ON
        assert box.take_and_clear() is Command.R1ON
        assert box.peek() is None

    def test_concurrent_take_delivers_once(self):
        box = CommandMailbox()
        box.enqueue(Command.R1ON)
        workers = 32
        barrier = threading.Barrier(workers)

        def take():
            barrier.wait()
            return box.take_and_clear()

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda _: take(), range(workers)))

        assert results.count(Command.R1ON) == 1
        assert results.count(None) == workers - 1
