"""
Tests for shared helpers.
"""

import datetime as dt

from sprint_planner.util import utc_now_iso


def test_utc_now_iso_is_parseable_utc_with_millis():
    before = dt.datetime.now(dt.timezone.utc)

    stamp = utc_now_iso()

    assert stamp.endswith("Z")
    assert len(stamp.split(".")[1]) == len("123Z")
    parsed = dt.datetime.fromisoformat(stamp.replace("Z", "+00:00"))
    assert parsed.utcoffset() == dt.timedelta(0)
    assert before - dt.timedelta(seconds=1) <= parsed <= dt.datetime.now(dt.timezone.utc)
