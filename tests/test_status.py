"""
Staleness status: GREEN / YELLOW / RED / NEVER from elapsed hours.
"""
from datetime import datetime, timedelta, timezone

import pytest

from critwalk.services.status import StatusColor, classify, hours_since

NOW = datetime(2026, 3, 1, 18, 0, 0)


class TestClassify:
    def test_never_when_no_walk(self):
        assert classify(None, NOW) == StatusColor.NEVER

    def test_one_hour_green(self):
        assert classify(NOW - timedelta(hours=1), NOW) == StatusColor.GREEN

    def test_just_now_green(self):
        assert classify(NOW, NOW) == StatusColor.GREEN

    def test_boundary_8h_green(self):
        assert classify(NOW - timedelta(hours=8), NOW) == StatusColor.GREEN

    def test_just_over_8h_yellow(self):
        assert classify(NOW - timedelta(hours=8, seconds=1), NOW) == StatusColor.YELLOW

    def test_9h_yellow(self):
        assert classify(NOW - timedelta(hours=9), NOW) == StatusColor.YELLOW

    def test_boundary_12h_yellow(self):
        assert classify(NOW - timedelta(hours=12), NOW) == StatusColor.YELLOW

    def test_12h_1s_red(self):
        assert classify(NOW - timedelta(hours=12, seconds=1), NOW) == StatusColor.RED

    def test_days_old_red(self):
        assert classify(NOW - timedelta(days=3), NOW) == StatusColor.RED

    def test_aware_timestamps_are_normalized(self):
        last = datetime(2026, 3, 1, 10, 0, tzinfo=timezone(timedelta(hours=-6)))  # 16:00 UTC
        assert classify(last, NOW) == StatusColor.GREEN

    def test_defaults_to_wall_clock(self):
        assert classify(datetime.now(timezone.utc) - timedelta(hours=13)) == StatusColor.RED

    def test_status_values_are_strings(self):
        assert StatusColor.YELLOW.value == "yellow"


class TestHoursSince:
    def test_none_is_infinite(self):
        assert hours_since(None, NOW) == float("inf")

    @pytest.mark.parametrize("hours", [0, 2.5, 11])
    def test_elapsed_hours(self, hours):
        assert hours_since(NOW - timedelta(hours=hours), NOW) == pytest.approx(hours)
