"""Tests for cron evaluation and schedule descriptions."""

from datetime import datetime

import pytest

from beekeeper.engine.cron import (
    field_matches,
    format_next_run,
    is_valid,
    matches,
    next_run,
    to_english,
)

# Friday
FRIDAY_9AM = datetime(2026, 1, 2, 9, 0)


class TestFieldMatches:
    """Tests for single-field matching."""

    def test_wildcard(self) -> None:
        """Test * matches any value."""
        assert field_matches("*", 0)
        assert field_matches("*", 59)

    def test_step(self) -> None:
        """Test */N matches multiples of N."""
        assert field_matches("*/15", 0)
        assert field_matches("*/15", 45)
        assert not field_matches("*/15", 10)

    def test_invalid_step(self) -> None:
        """Test zero, negative and non-numeric steps never match."""
        assert not field_matches("*/0", 0)
        assert not field_matches("*/-5", 10)
        assert not field_matches("*/x", 0)

    def test_range_inclusive(self) -> None:
        """Test A-B includes both bounds."""
        assert field_matches("1-5", 1)
        assert field_matches("1-5", 5)
        assert not field_matches("1-5", 0)
        assert not field_matches("1-5", 6)

    def test_list(self) -> None:
        """Test comma lists."""
        assert field_matches("0,15,30", 15)
        assert not field_matches("0,15,30", 20)

    def test_exact(self) -> None:
        """Test a bare integer."""
        assert field_matches("7", 7)
        assert not field_matches("7", 8)

    def test_range_mixed_with_list_never_matches(self) -> None:
        """Test a field with both - and , is compared as an integer."""
        assert not field_matches("1-3,5", 2)
        assert not field_matches("1-3,5", 5)

    def test_garbage(self) -> None:
        """Test unparseable fields never match."""
        assert not field_matches("abc", 0)
        assert not field_matches("1-", 1)


class TestMatches:
    """Tests for full expression matching."""

    def test_every_minute(self) -> None:
        """Test * * * * * matches any instant."""
        assert matches("* * * * *", FRIDAY_9AM)
        assert matches("* * * * *", datetime(2026, 7, 19, 23, 59))

    def test_daily(self) -> None:
        """Test a daily schedule matches only its minute."""
        assert matches("0 9 * * *", FRIDAY_9AM)
        assert not matches("0 9 * * *", datetime(2026, 1, 2, 9, 1))

    def test_seconds_ignored(self) -> None:
        """Test only minute resolution matters."""
        assert matches("0 9 * * *", datetime(2026, 1, 2, 9, 0, 45, 123))

    def test_day_of_week_sunday_is_zero(self) -> None:
        """Test Friday is 5 and Sunday is 0."""
        assert matches("0 9 * * 5", FRIDAY_9AM)
        assert not matches("0 9 * * 1", FRIDAY_9AM)
        assert matches("0 9 * * 0", datetime(2026, 1, 4, 9, 0))

    def test_weekday_range(self) -> None:
        """Test 1-5 covers Friday but not Saturday."""
        assert matches("0 9 * * 1-5", FRIDAY_9AM)
        assert not matches("0 9 * * 1-5", datetime(2026, 1, 3, 9, 0))

    def test_day_of_month_and_month(self) -> None:
        """Test day-of-month and month fields."""
        assert matches("0 9 2 1 *", FRIDAY_9AM)
        assert not matches("0 9 3 1 *", FRIDAY_9AM)
        assert not matches("0 9 2 2 *", FRIDAY_9AM)

    @pytest.mark.parametrize("expr", ["", "* * * *", "* * * * * *", "a b c d e"])
    def test_malformed(self, expr: str) -> None:
        """Test malformed expressions never match."""
        assert not matches(expr, FRIDAY_9AM)

    def test_extra_whitespace(self) -> None:
        """Test fields may be separated by runs of whitespace."""
        assert matches("  0   9 * *  5 ", FRIDAY_9AM)

    def test_is_valid(self) -> None:
        """Test validation counts fields."""
        assert is_valid("*/5 * * * *")
        assert not is_valid("*/5 * * *")


class TestNextRun:
    """Tests for next_run."""

    def test_later_today(self) -> None:
        """Test the next match on the same day."""
        assert next_run("0 9 * * *", datetime(2026, 1, 2, 8, 30)) == FRIDAY_9AM

    def test_strictly_after(self) -> None:
        """Test an exact match moves to the next occurrence."""
        assert next_run("0 9 * * *", FRIDAY_9AM) == datetime(2026, 1, 3, 9, 0)

    def test_truncates_seconds(self) -> None:
        """Test the result is a whole minute."""
        result = next_run("* * * * *", datetime(2026, 1, 2, 9, 0, 30))
        assert result == datetime(2026, 1, 2, 9, 1)

    def test_skips_weekend(self) -> None:
        """Test weekday schedules jump from Friday to Monday."""
        assert next_run("0 9 * * 1-5", FRIDAY_9AM) == datetime(2026, 1, 5, 9, 0)

    def test_result_matches(self) -> None:
        """Test the returned instant satisfies the expression."""
        result = next_run("*/10 14 * * *", FRIDAY_9AM)
        assert result == datetime(2026, 1, 2, 14, 0)
        assert matches("*/10 14 * * *", result)

    def test_malformed(self) -> None:
        """Test malformed expressions have no next run."""
        assert next_run("* * *", FRIDAY_9AM) is None

    def test_never_matching(self) -> None:
        """Test an impossible date gives None after a year of search."""
        assert next_run("0 0 30 2 *", FRIDAY_9AM) is None


class TestToEnglish:
    """Tests for schedule descriptions."""

    @pytest.mark.parametrize(
        ("expr", "expected"),
        [
            ("*/1 * * * *", "Every minute"),
            ("*/5 * * * *", "Every 5 minutes"),
            ("0 * * * *", "Every hour"),
            ("15 * * * *", "Every hour at :15"),
            ("0 9 * * *", "Daily at 9:00 AM"),
            ("30 14 * * *", "Daily at 2:30 PM"),
            ("0 0 * * *", "Daily at 12:00 AM"),
            ("0 12 * * *", "Daily at 12:00 PM"),
            ("0 9 * * 1-5", "Weekdays at 9:00 AM"),
            ("0 10 * * 0,6", "Weekends at 10:00 AM"),
            ("0 9 * * 1", "Monday at 9:00 AM"),
            ("0 9 * * 1,3,5", "Mon, Wed, Fri at 9:00 AM"),
            ("0 */2 * * *", "Every 2 hours"),
        ],
    )
    def test_known_shapes(self, expr: str, expected: str) -> None:
        """Test common schedules are described."""
        assert to_english(expr) == expected

    @pytest.mark.parametrize("expr", ["0 9 1 * *", "0 9 * * x", "not cron"])
    def test_unknown_shapes_unchanged(self, expr: str) -> None:
        """Test anything else is returned as-is."""
        assert to_english(expr) == expr


class TestFormatNextRun:
    """Tests for relative next-run formatting."""

    def test_today(self) -> None:
        """Test same-day runs show only the time."""
        assert format_next_run(FRIDAY_9AM, now=datetime(2026, 1, 2, 8, 0)) == "9:00 AM"

    def test_tomorrow(self) -> None:
        """Test next-day runs are prefixed."""
        instant = datetime(2026, 1, 3, 21, 5)
        assert format_next_run(instant, now=FRIDAY_9AM) == "tomorrow 9:05 PM"

    def test_later(self) -> None:
        """Test later runs show the date."""
        instant = datetime(2026, 3, 4, 9, 0)
        assert format_next_run(instant, now=FRIDAY_9AM) == "Mar 4, 9:00 AM"
