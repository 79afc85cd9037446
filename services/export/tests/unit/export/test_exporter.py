import asyncio
import logging
from datetime import datetime, timezone

import pytest
from src.domain.datasets import PAGE_VIEWS, SESSIONS
from src.export.exporter import build_object_key, compact_timestamp

from shared.constants import EventTables


def _row(**extra):
    row = {"page_url": "/p", "session_id": "s1", "time_bucket": "2025-03-01 10:00:00"}
    row.update(extra)
    return row


def _all_rows():
    return {
        "page_views": [_row(view_count=1)],
        "click_events": [_row(click_count=2)],
        "sessions": [_row(duration=30)],
        "scroll_depth": [_row(total_scrolls=4)],
    }


def test_compact_timestamp_has_no_colons_or_dots():
    moment = datetime(2025, 3, 1, 10, 15, 0, 123000, tzinfo=timezone.utc)
    assert compact_timestamp(moment) == "2025-03-01_101500123"


def test_object_key_uses_window_end_date():
    end = datetime(2025, 3, 2, 0, 0, 1, tzinfo=timezone.utc)
    key = build_object_key(PAGE_VIEWS, end, "2025-03-02_000001000")
    assert key == "page-views/2025-03-02/page_views_2025-03-02_000001000.csv"
    assert build_object_key(SESSIONS, end, "x").startswith("sessions/2025-03-02/")


@pytest.mark.asyncio
async def test_no_data_skips_and_advances_watermark(exporter, tracker, sink, t1):
    result = await exporter.run_export_cycle()
    assert result.to_response() == {
        "success": True,
        "skipped": True,
        "reason": "no_meaningful_data",
    }
    assert tracker.last_upload_time == t1
    assert sink.uploaded == []


@pytest.mark.asyncio
async def test_only_page_views_produces_single_artifact(
    exporter, store, sink, tracker, page_view_rows, t1
):
    store.counts = {EventTables.PAGE_VIEWS: 3}
    store.rows = {"page_views": page_view_rows}

    result = await exporter.run_export_cycle()

    assert result.success is True
    assert result.uploads == 1
    assert result.total == 1
    assert len(sink.uploaded) == 1
    artifact = sink.uploaded[0]
    assert artifact.key == f"page-views/2025-03-01/page_views_{result.timestamp}.csv"
    assert artifact.content_type == "text/csv"
    assert artifact.metadata["dataType"] == "page_views"
    assert artifact.metadata["recordCount"] == "3"
    lines = artifact.body.split("\n")
    assert lines[0] == ",".join(PAGE_VIEWS.columns)
    assert len(lines) == 4
    assert lines[1].startswith('https://lugx.example/games,"Games, all of them",5,')
    assert tracker.last_upload_time == t1


@pytest.mark.asyncio
async def test_failing_aggregator_does_not_stop_others(exporter, store, sink):
    store.counts = {EventTables.PAGE_VIEWS: 1}
    store.rows = _all_rows()
    store.failing_aggregates = {"click_events"}

    result = await exporter.run_export_cycle()

    assert result.success is True
    assert 0 < result.uploads < 4
    assert result.uploads == 3
    assert sorted(a.metadata["dataType"] for a in sink.uploaded) == [
        "page_views",
        "scroll_depth",
        "sessions",
    ]


@pytest.mark.asyncio
async def test_single_upload_failure_is_isolated(exporter, store, sink, tracker, t1):
    store.counts = {EventTables.SESSIONS: 1}
    store.rows = _all_rows()
    sink.failing = {"sessions"}

    result = await exporter.run_export_cycle()

    assert result.success is True
    assert result.uploads == 3
    assert result.total == 4
    assert "sessions" not in {a.metadata["dataType"] for a in sink.uploaded}
    assert tracker.last_upload_time == t1


@pytest.mark.asyncio
async def test_probe_failure_still_exports(exporter, store, sink):
    store.count_error = TimeoutError("probe timed out")
    store.rows = {"scroll_depth": [_row(total_scrolls=9)]}

    result = await exporter.run_export_cycle()

    assert result.uploads == 1
    assert sink.uploaded[0].key.startswith("scroll-depth/")


@pytest.mark.asyncio
async def test_unexpected_error_reports_failure_and_keeps_watermark(
    exporter, tracker, t0
):
    async def _explode(window):
        raise RuntimeError("availability blew up")

    exporter.availability.has_data = _explode

    result = await exporter.run_export_cycle()

    assert result.success is False
    assert "availability blew up" in result.error
    assert tracker.last_upload_time == t0


@pytest.mark.asyncio
async def test_overlapping_cycle_is_rejected(exporter, store, sink, tracker, t0):
    store.counts = {EventTables.PAGE_VIEWS: 1}
    store.rows = {"page_views": [_row(view_count=1)]}
    release = asyncio.Event()
    original_upload = sink.upload

    async def _slow_upload(artifact):
        await release.wait()
        return await original_upload(artifact)

    sink.upload = _slow_upload

    first = asyncio.create_task(exporter.run_export_cycle())
    await asyncio.sleep(0.01)
    assert exporter.is_running

    second = await exporter.run_export_cycle()
    assert second.success is False
    assert second.reason == "cycle_in_progress"
    assert tracker.last_upload_time == t0

    release.set()
    result = await first
    assert result.uploads == 1
    assert not exporter.is_running


@pytest.mark.asyncio
async def test_empty_data_types_log_their_label(exporter, store, page_view_rows, caplog):
    store.counts = {EventTables.PAGE_VIEWS: 3}
    store.rows = {"page_views": page_view_rows}

    with caplog.at_level(logging.INFO, logger="export.exporter"):
        await exporter.run_export_cycle()

    empty = [r for r in caplog.records if r.getMessage() == "nothing_to_upload"]
    assert sorted(r.label for r in empty) == [
        "click events",
        "scroll depth data",
        "session data",
    ]
