"""Tests for the ordered ingestion queue."""
import threading
from datetime import datetime, timedelta, timezone

import pytest

from quoteflow.ingestion.queue import IngestionQueue

BASE = datetime(2024, 1, 20, 9, 0, tzinfo=timezone.utc)


def test_records_come_out_oldest_first(make_record):
    queue = IngestionQueue()
    late = queue.enqueue(make_record(received_at=BASE + timedelta(minutes=5), requester_name="Late"))
    early = queue.enqueue(make_record(received_at=BASE, requester_name="Early"))

    assert queue.peek_next().id == early.id
    queue.mark_consumed(early.id)
    assert queue.peek_next().id == late.id


def test_equal_timestamps_keep_arrival_order(make_record):
    queue = IngestionQueue()
    first = queue.enqueue(make_record(received_at=BASE))
    second = queue.enqueue(make_record(received_at=BASE))

    assert queue.peek_next().id == first.id
    queue.mark_consumed(first.id)
    assert queue.peek_next().id == second.id


def test_enqueue_assigns_id_and_utc_timestamp(make_record):
    queue = IngestionQueue()
    queued = queue.enqueue(make_record(received_at=datetime(2024, 1, 20, 9, 0)))

    assert queued.id
    assert queued.received_at.tzinfo is not None
    assert queued.received_at.utcoffset() == timedelta(0)


def test_peek_does_not_remove(make_record):
    queue = IngestionQueue()
    queued = queue.enqueue(make_record())

    assert queue.peek_next().id == queued.id
    assert queue.peek_next().id == queued.id
    assert queue.size() == 1


def test_empty_queue_peeks_none():
    queue = IngestionQueue()

    assert queue.peek_next() is None
    assert queue.is_empty()
    assert len(queue) == 0


def test_mark_consumed_is_idempotent(make_record):
    queue = IngestionQueue()
    queued = queue.enqueue(make_record())

    assert queue.mark_consumed(queued.id) is True
    assert queue.mark_consumed(queued.id) is False
    assert queue.is_empty()


def test_mark_consumed_unknown_id_logs_warning(caplog):
    queue = IngestionQueue()
    caplog.set_level("WARNING")

    assert queue.mark_consumed("nope") is False
    assert "unknown record nope" in caplog.text


def test_duplicate_ids_are_rejected(make_record):
    queue = IngestionQueue()
    queue.enqueue(make_record(id="abc"))

    with pytest.raises(ValueError):
        queue.enqueue(make_record(id="abc"))


def test_consumed_records_cannot_be_enqueued(make_record):
    with pytest.raises(ValueError):
        IngestionQueue().enqueue(make_record(consumed=True))


def test_concurrent_enqueue_keeps_every_record(make_record):
    queue = IngestionQueue()

    def producer(offset: int) -> None:
        for index in range(50):
            queue.enqueue(make_record(received_at=BASE + timedelta(seconds=offset * 100 + index)))

    threads = [threading.Thread(target=producer, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert queue.size() == 200
    assert queue.peek_next().received_at == BASE
