"""Scheduler loop: bounded runs and graceful stop."""

import asyncio
import json
import threading

from conftest import FakeSerial, frame
from rangelog.enums import Mode, Rotation
from rangelog.poller import Poller
from rangelog.rotation import RotationPolicy
from rangelog.scheduler import Scheduler
from rangelog.serialio.channel import OpenChannel, UnavailableChannel
from rangelog.writer import JsonLinesWriter


def make_scheduler(tmp_path, script, interval=0.0):
    channels = [
        OpenChannel("/dev/a", Mode.BINARY, FakeSerial(script)),
        UnavailableChannel("/dev/b", Mode.BINARY, "gone"),
    ]
    writer = JsonLinesWriter(tmp_path, RotationPolicy(Rotation.DAILY))
    return Scheduler(Poller(channels, (500, 6000)), writer, interval)


def read_records(tmp_path):
    lines = []
    for path in sorted(tmp_path.glob("sensor_data_*.json")):
        lines += path.read_text().splitlines()
    return [json.loads(l) for l in lines]


def test_runs_bounded_number_of_cycles(tmp_path):
    sched = make_scheduler(tmp_path, [frame(12340), b"", frame(20000)])
    done = asyncio.run(sched.run(max_cycles=3))
    sched.writer.close()

    assert done == 3
    records = read_records(tmp_path)
    assert len(records) == 3
    assert [r["sensors"]["/dev/a"]["distance_mm"] for r in records] == [1234, 0, 2000]
    assert all(set(r["sensors"]) == {"/dev/a", "/dev/b"} for r in records)


def test_stop_event_ends_loop(tmp_path):
    sched = make_scheduler(tmp_path, [], interval=10.0)

    async def scenario():
        stop = asyncio.Event()
        task = asyncio.create_task(sched.run(stop))
        await asyncio.sleep(0.05)
        stop.set()
        return await asyncio.wait_for(task, timeout=2.0)

    done = asyncio.run(scenario())
    sched.writer.close()
    assert done == 1


def test_already_stopped_runs_nothing(tmp_path):
    sched = make_scheduler(tmp_path, [])

    async def scenario():
        stop = asyncio.Event()
        stop.set()
        return await sched.run(stop)

    assert asyncio.run(scenario()) == 0
    assert read_records(tmp_path) == []


def test_write_failure_does_not_stop_polling(tmp_path):
    blocker = tmp_path / "blocked"
    blocker.write_text("x")
    channels = [OpenChannel("/dev/a", Mode.BINARY, FakeSerial([frame(12340)] * 3))]
    writer = JsonLinesWriter(blocker, RotationPolicy(Rotation.DAILY))
    sched = Scheduler(Poller(channels, (500, 6000)), writer, 0.0)

    assert asyncio.run(sched.run(max_cycles=3)) == 3
    assert writer.failures == 3
    assert sched.poller.cycles == 3


def test_file_append_runs_off_the_event_loop_thread(tmp_path):
    threads = []

    class RecordingWriter(JsonLinesWriter):
        def append(self, record, now=None):
            threads.append(threading.get_ident())
            return super().append(record, now)

    channels = [OpenChannel("/dev/a", Mode.BINARY, FakeSerial([frame(12340)]))]
    writer = RecordingWriter(tmp_path, RotationPolicy(Rotation.DAILY))
    sched = Scheduler(Poller(channels, (500, 6000)), writer, 0.0)

    assert asyncio.run(sched.run(max_cycles=2)) == 2
    writer.close()
    assert len(threads) == 2
    assert threading.get_ident() not in threads
