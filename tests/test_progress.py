"""Tests for the in-process progress bus."""

from __future__ import annotations

import logging

from newswire.core.types import CrawlProgress, CrawlStatus
from newswire.progress import ProgressBus


def _event(status: CrawlStatus = CrawlStatus.PENDING) -> CrawlProgress:
    return CrawlProgress(source_id="bbc-news", source_name="BBC News", status=status)


def test_subscribers_receive_events_in_subscription_order():
    bus = ProgressBus()
    received = []
    bus.subscribe(lambda event: received.append(("first", event.status)))
    bus.subscribe(lambda event: received.append(("second", event.status)))

    bus.publish(_event(CrawlStatus.PENDING))
    bus.publish(_event(CrawlStatus.CRAWLING))

    assert received == [
        ("first", CrawlStatus.PENDING),
        ("second", CrawlStatus.PENDING),
        ("first", CrawlStatus.CRAWLING),
        ("second", CrawlStatus.CRAWLING),
    ]


def test_unsubscribe_is_idempotent():
    bus = ProgressBus()
    received = []
    unsubscribe = bus.subscribe(received.append)

    unsubscribe()
    unsubscribe()
    bus.publish(_event())

    assert received == []
    assert bus.subscriber_count == 0


def test_unsubscribing_during_publish_does_not_skip_others():
    bus = ProgressBus()
    received = []
    handles = {}

    def first(event):
        received.append("first")
        handles["first"]()
        handles["second"]()

    handles["first"] = bus.subscribe(first)
    handles["second"] = bus.subscribe(lambda event: received.append("second"))
    bus.subscribe(lambda event: received.append("third"))

    bus.publish(_event())
    bus.publish(_event())

    assert received == ["first", "second", "third", "third"]


def test_failing_subscriber_is_logged_and_skipped(caplog):
    bus = ProgressBus()
    received = []

    def broken(event):
        raise RuntimeError("subscriber bug")

    bus.subscribe(broken)
    bus.subscribe(received.append)

    with caplog.at_level(logging.WARNING, logger="newswire.progress"):
        bus.publish(_event())

    assert len(received) == 1
    assert any(record.message == "Progress subscriber failed" for record in caplog.records)


def test_late_subscriber_sees_only_future_events():
    bus = ProgressBus()
    bus.publish(_event(CrawlStatus.PENDING))
    received = []

    bus.subscribe(received.append)
    bus.publish(_event(CrawlStatus.COMPLETED))

    assert [event.status for event in received] == [CrawlStatus.COMPLETED]
