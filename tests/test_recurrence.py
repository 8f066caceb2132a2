"""
Tests for the recurrence engine.
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from moneytrack.finance.recurrence import (
    RecurrenceError,
    estimate_recurring_total,
    next_occurrence,
    occurrence_id,
    process_recurring,
    upcoming_occurrences,
)
from moneytrack.models.finance import RecurringFrequency, TransactionType


class TestNextOccurrence:
    """Tests for calendar-aware stepping."""

    @pytest.mark.parametrize("frequency,expected", [
        (RecurringFrequency.DAILY, date(2024, 1, 16)),
        (RecurringFrequency.WEEKLY, date(2024, 1, 22)),
        (RecurringFrequency.BIWEEKLY, date(2024, 1, 29)),
        (RecurringFrequency.MONTHLY, date(2024, 2, 15)),
        (RecurringFrequency.YEARLY, date(2025, 1, 15)),
    ])
    def test_each_frequency(self, frequency, expected):
        """Test one step of every frequency."""
        assert next_occurrence(date(2024, 1, 15), frequency) == expected

    def test_month_end_clamps(self):
        """Test that Jan 31 + 1 month lands on the last day of February."""
        assert next_occurrence(date(2024, 1, 31), RecurringFrequency.MONTHLY) == date(2024, 2, 29)
        assert next_occurrence(date(2023, 1, 31), RecurringFrequency.MONTHLY) == date(2023, 2, 28)

    def test_leap_day_yearly(self):
        """Test that Feb 29 + 1 year clamps to Feb 28."""
        assert next_occurrence(date(2024, 2, 29), RecurringFrequency.YEARLY) == date(2025, 2, 28)

    def test_unknown_frequency(self):
        """Test that an unknown frequency is rejected."""
        with pytest.raises(RecurrenceError):
            next_occurrence(date(2024, 1, 1), "fortnightly")


class TestProcessRecurring:
    """Tests for materializing due occurrences."""

    def test_monthly_backlog(self, make_rule):
        """Test a never-processed monthly rule catching up to today."""
        rule = make_rule(frequency=RecurringFrequency.MONTHLY, start_date=date(2024, 1, 15))
        result = process_recurring([rule], date(2024, 4, 15))

        assert [t.date.date() for t in result.new_transactions] == [
            date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15), date(2024, 4, 15),
        ]
        assert len(result.updated_rules) == 1
        assert result.updated_rules[0].last_processed == date(2024, 4, 15)
        assert result.capped_rule_ids == []

    def test_generated_transactions_carry_provenance(self, make_rule):
        """Test that generated transactions copy the rule and are tagged."""
        rule = make_rule(note="Rent", start_date=date(2024, 1, 1))
        txn = process_recurring([rule], date(2024, 1, 1)).new_transactions[0]

        assert txn.is_recurring_generated
        assert txn.recurring_id == rule.id
        assert txn.amount == rule.amount
        assert txn.category_id == rule.category_id
        assert txn.note == "Rent"
        assert txn.date == datetime(2024, 1, 1)
        assert txn.id == occurrence_id(rule.id, date(2024, 1, 1))

    def test_end_date_boundary(self, make_rule):
        """Test that nothing is generated after the end date."""
        rule = make_rule(
            frequency=RecurringFrequency.WEEKLY,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 20),
        )
        result = process_recurring([rule], date(2024, 2, 1))

        assert [t.date.date() for t in result.new_transactions] == [
            date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15),
        ]
        assert result.updated_rules[0].last_processed == date(2024, 1, 15)

    def test_idempotent_with_updated_rules(self, make_rule):
        """Test that feeding back updated rules generates nothing new."""
        rule = make_rule(frequency=RecurringFrequency.DAILY, start_date=date(2024, 3, 1))
        first = process_recurring([rule], date(2024, 3, 10))
        second = process_recurring(first.updated_rules, date(2024, 3, 10))

        assert first.generated_count == 10
        assert second.generated_count == 0
        assert second.updated_rules == []

    def test_disabled_rule_untouched(self, make_rule):
        """Test that a disabled rule neither generates nor advances."""
        rule = make_rule(
            start_date=date(2020, 1, 1),
            last_processed=date(2020, 1, 1),
            is_enabled=False,
        )
        result = process_recurring([rule], date(2024, 1, 1))
        assert result.new_transactions == []
        assert result.updated_rules == []

    def test_future_start_not_due(self, make_rule):
        """Test that a rule starting after today produces nothing."""
        rule = make_rule(start_date=date(2024, 6, 1))
        assert process_recurring([rule], date(2024, 5, 31)).generated_count == 0

    def test_resumes_after_watermark(self, make_rule):
        """Test that processing starts one step after last_processed."""
        rule = make_rule(
            frequency=RecurringFrequency.MONTHLY,
            start_date=date(2024, 1, 15),
            last_processed=date(2024, 2, 15),
        )
        result = process_recurring([rule], date(2024, 3, 20))
        assert [t.date.date() for t in result.new_transactions] == [date(2024, 3, 15)]

    def test_backlog_capped(self, make_rule):
        """Test that the cap stops the loop and flags the rule."""
        rule = make_rule(frequency=RecurringFrequency.DAILY, start_date=date(2024, 1, 1))
        result = process_recurring([rule], date(2024, 1, 31), max_occurrences=10)

        assert result.generated_count == 10
        assert result.capped_rule_ids == [rule.id]
        assert result.updated_rules[0].last_processed == date(2024, 1, 10)

        resumed = process_recurring(result.updated_rules, date(2024, 1, 31), max_occurrences=100)
        assert resumed.new_transactions[0].date.date() == date(2024, 1, 11)
        assert resumed.capped_rule_ids == []

    def test_cap_reached_exactly_is_not_flagged(self, make_rule):
        """Test that hitting the cap with nothing left due is not a capped backlog."""
        rule = make_rule(frequency=RecurringFrequency.DAILY, start_date=date(2024, 1, 1))
        result = process_recurring([rule], date(2024, 1, 5), max_occurrences=5)
        assert result.generated_count == 5
        assert result.capped_rule_ids == []

    def test_aware_today_uses_local_date(self, make_rule):
        """Test that a timezone-aware today is read as a local calendar date."""
        rule = make_rule(frequency=RecurringFrequency.DAILY, start_date=date(2024, 1, 1))
        aware = datetime(2024, 1, 5, 23, 30, tzinfo=timezone.utc)
        local_day = aware.astimezone().date()

        result = process_recurring([rule], aware)
        assert result.generated_count == (local_day - date(2024, 1, 1)).days + 1
        assert result.updated_rules[0].last_processed == local_day

    def test_invalid_cap_rejected(self, make_rule):
        """Test that a cap below one is refused."""
        with pytest.raises(RecurrenceError):
            process_recurring([make_rule()], date(2024, 1, 1), max_occurrences=0)

    def test_rule_input_not_mutated(self, make_rule):
        """Test that the input rule keeps its watermark."""
        rule = make_rule(start_date=date(2024, 1, 1))
        process_recurring([rule], date(2024, 3, 1))
        assert rule.last_processed is None


class TestUpcoming:
    """Tests for the read-only preview."""

    def test_pending_rule_starts_at_start_date(self, make_rule):
        """Test that a never-processed rule previews its start date first."""
        rule = make_rule(frequency=RecurringFrequency.MONTHLY, start_date=date(2024, 1, 31))
        assert upcoming_occurrences(rule, 3) == [
            date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 29),
        ]

    def test_active_rule_starts_after_watermark(self, make_rule):
        """Test that the preview matches what processing would do next."""
        rule = make_rule(
            frequency=RecurringFrequency.WEEKLY,
            start_date=date(2024, 1, 1),
            last_processed=date(2024, 1, 8),
        )
        assert upcoming_occurrences(rule, 2) == [date(2024, 1, 15), date(2024, 1, 22)]

    def test_stops_at_end_date(self, make_rule):
        """Test that the preview stops early at the end date."""
        rule = make_rule(
            frequency=RecurringFrequency.MONTHLY,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 2, 15),
        )
        assert upcoming_occurrences(rule, 5) == [date(2024, 1, 1), date(2024, 2, 1)]

    def test_today_skips_past_occurrences(self, make_rule):
        """Test that with today given only pending and future dates are listed."""
        rule = make_rule(frequency=RecurringFrequency.WEEKLY, start_date=date(2024, 1, 1))
        assert upcoming_occurrences(rule, 3, today=date(2024, 1, 10)) == [
            date(2024, 1, 15), date(2024, 1, 22), date(2024, 1, 29),
        ]
        assert upcoming_occurrences(rule, 1, today=date(2024, 1, 15)) == [date(2024, 1, 15)]

    def test_today_after_end_date(self, make_rule):
        """Test that an ended schedule previews nothing from today on."""
        rule = make_rule(start_date=date(2024, 1, 1), end_date=date(2024, 3, 1))
        assert upcoming_occurrences(rule, 5, today=date(2024, 6, 1)) == []

    def test_disabled_rule_has_no_preview(self, make_rule):
        """Test that disabled rules preview nothing."""
        assert upcoming_occurrences(make_rule(is_enabled=False), 5) == []


class TestEstimate:
    """Tests for the recurring total estimator."""

    def test_counts_occurrences_in_window(self, make_rule):
        """Test amount times occurrences inside the window."""
        rule = make_rule(
            frequency=RecurringFrequency.WEEKLY,
            start_date=date(2024, 1, 1),
            amount="100",
        )
        total = estimate_recurring_total([rule], date(2024, 1, 1), date(2024, 1, 31))
        assert total == Decimal("500")

    def test_respects_rule_window(self, make_rule):
        """Test clipping to the rule's own start and end dates."""
        rule = make_rule(
            frequency=RecurringFrequency.MONTHLY,
            start_date=date(2024, 3, 10),
            end_date=date(2024, 5, 10),
            amount="20",
        )
        total = estimate_recurring_total([rule], date(2024, 1, 1), date(2024, 12, 31))
        assert total == Decimal("60")

    def test_ignores_watermark(self, make_rule):
        """Test that the estimate is independent of last_processed."""
        rule = make_rule(
            frequency=RecurringFrequency.MONTHLY,
            start_date=date(2024, 1, 1),
            last_processed=date(2024, 6, 1),
            amount="10",
        )
        total = estimate_recurring_total([rule], date(2024, 1, 1), date(2024, 3, 31))
        assert total == Decimal("30")

    def test_type_filter_and_disabled(self, make_rule):
        """Test filtering by type and skipping disabled rules."""
        salary = make_rule(type=TransactionType.INCOME, start_date=date(2024, 1, 1), amount="1000")
        rent = make_rule(start_date=date(2024, 1, 1), amount="300")
        paused = make_rule(start_date=date(2024, 1, 1), amount="999", is_enabled=False)
        rules = [salary, rent, paused]

        window = (date(2024, 1, 1), date(2024, 1, 31))
        assert estimate_recurring_total(rules, *window, TransactionType.EXPENSE) == Decimal("300")
        assert estimate_recurring_total(rules, *window, TransactionType.INCOME) == Decimal("1000")
        assert estimate_recurring_total(rules, *window) == Decimal("1300")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
