"""
Tests for the event model: factories, validation and recurrence activity.
"""

import pytest
from fineventlab.core.conditions import (
    ConditionTag,
    DateInRange,
    DateIs,
    EventHappened,
    IncomeIsAbove,
    NetworthIsAbove,
    condition_from_dict,
    condition_to_dict,
)
from fineventlab.core.errors import ConfigError
from fineventlab.core.events import (
    ALWAYS,
    EventType,
    Frequency,
    Monthly,
    Once,
    ScenarioEvent,
    Yearly,
    event_from_dict,
    is_event_active_in_month,
    make_event,
    make_one_off,
    make_recurring,
)
from fineventlab.core.local_date import ld


class TestFactories:
    """Factories build validated, frozen events."""

    def test_make_one_off(self):
        event = make_one_off("Bonus", 1000, "income", ld(2025, 3, 10))
        assert event.type is EventType.INCOME
        assert event.recurrence == Once(ld(2025, 3, 10))
        assert event.unlocked_by == ()
        assert event.signed_amount == 1000

    def test_expense_signed_amount_is_negative(self):
        event = make_one_off("Laptop", 1500, EventType.EXPENSE, ld(2025, 3, 10))
        assert event.signed_amount == -1500

    def test_make_recurring_monthly_and_yearly(self):
        rent = make_recurring("Rent", 900, "expense", "monthly", ld(2025, 1, 1))
        tax = make_recurring(
            "Tax", 3000, "expense", Frequency.YEARLY, ld(2025, 5, 1), ld(2030, 5, 1)
        )
        assert isinstance(rent.recurrence, Monthly)
        assert rent.recurrence.end_date is None
        assert isinstance(tax.recurrence, Yearly)
        assert tax.frequency is Frequency.YEARLY

    def test_make_recurring_rejects_once(self):
        with pytest.raises(ConfigError, match="monthly or yearly"):
            make_recurring("Rent", 900, "expense", "once", ld(2025, 1, 1))

    def test_make_recurring_rejects_unknown_frequency(self):
        with pytest.raises(ConfigError, match="unknown frequency"):
            make_recurring("Rent", 900, "expense", "weekly", ld(2025, 1, 1))

    def test_inverted_range_fails_at_construction(self):
        with pytest.raises(ConfigError, match="before start"):
            make_recurring(
                "Rent", 900, "expense", "monthly", ld(2025, 6, 1), ld(2025, 1, 1)
            )

    def test_negative_amount_rejected(self):
        with pytest.raises(ConfigError, match="non-negative"):
            make_one_off("Refund", -10, "income", ld(2025, 1, 1))

    def test_unknown_type_rejected(self):
        with pytest.raises(ConfigError, match="unknown type"):
            make_one_off("Gift", 10, "transfer", ld(2025, 1, 1))

    def test_empty_name_rejected(self):
        with pytest.raises(ConfigError, match="name"):
            make_one_off("  ", 10, "income", ld(2025, 1, 1))

    def test_conditions_are_stored_as_tuple(self):
        event = make_event("Car", 100, "expense", [EventHappened("Buy Car")])
        assert event.unlocked_by == (EventHappened("Buy Car"),)
        assert hash(event) == hash(
            make_event("Car", 100, "expense", (EventHappened("Buy Car"),))
        )

    def test_events_are_frozen(self):
        event = make_one_off("Bonus", 1000, "income", ld(2025, 3, 10))
        with pytest.raises(AttributeError):
            event.amount = 5


class TestRecurrenceActivity:
    """is_event_active_in_month follows the calendar pattern only."""

    def test_once_active_only_in_its_month(self):
        event = make_one_off("Bonus", 1000, "income", ld(2025, 3, 28))
        assert is_event_active_in_month(ld(2025, 3, 1), event)
        assert not is_event_active_in_month(ld(2025, 2, 1), event)
        assert not is_event_active_in_month(ld(2026, 3, 1), event)

    def test_monthly_inclusive_range(self):
        event = make_recurring(
            "Job", 2500, "income", "monthly", ld(2025, 1, 15), ld(2026, 3, 31)
        )
        assert is_event_active_in_month(ld(2025, 1, 1), event)
        assert is_event_active_in_month(ld(2026, 3, 1), event)
        assert not is_event_active_in_month(ld(2024, 12, 1), event)
        assert not is_event_active_in_month(ld(2026, 4, 1), event)

    def test_open_ended_monthly(self):
        event = make_recurring("Rent", 900, "expense", "monthly", ld(2025, 1, 1))
        assert is_event_active_in_month(ld(2055, 1, 1), event)

    def test_yearly_matches_month_number_across_years(self):
        event = make_recurring("Tax", 600, "expense", "yearly", ld(2025, 11, 20))
        assert is_event_active_in_month(ld(2025, 11, 1), event)
        assert is_event_active_in_month(ld(2026, 11, 30), event)
        assert not is_event_active_in_month(ld(2026, 10, 1), event)
        assert not is_event_active_in_month(ld(2024, 11, 1), event)

    def test_yearly_respects_end_date(self):
        event = make_recurring(
            "Tax", 600, "expense", "yearly", ld(2025, 5, 1), ld(2027, 4, 30)
        )
        assert is_event_active_in_month(ld(2026, 5, 1), event)
        assert not is_event_active_in_month(ld(2027, 5, 1), event)

    def test_default_recurrence_is_open_monthly(self):
        assert ALWAYS == Monthly(ld(1, 1, 1))
        assert ALWAYS.end_date is None
        event = ScenarioEvent("Holidays", EventType.EXPENSE, 4000)
        assert event.recurrence is ALWAYS

    def test_make_event_without_recurrence_is_always_active(self):
        event = make_event("Holidays", 4000, "expense")
        assert is_event_active_in_month(ld(1999, 1, 1), event)
        assert is_event_active_in_month(ld(2099, 12, 1), event)

    def test_unknown_recurrence_variant_raises(self):
        event = ScenarioEvent("Odd", EventType.INCOME, 1, recurrence="weekly")
        with pytest.raises(TypeError):
            is_event_active_in_month(ld(2025, 1, 1), event)


class TestConditions:
    """Condition variants carry their tag and serialize to catalog form."""

    def test_tags(self):
        assert DateIs(ld(2025, 1, 1)).tag is ConditionTag.CASHFLOW
        assert DateInRange(ld(2025, 1, 1), ld(2025, 2, 1)).tag is ConditionTag.CASHFLOW
        assert NetworthIsAbove(1000).tag is ConditionTag.BALANCE
        assert EventHappened("A").tag is ConditionTag.BALANCE
        assert IncomeIsAbove("A", 10).tag is ConditionTag.BALANCE

    def test_date_in_range_rejects_inverted_range(self):
        with pytest.raises(ConfigError):
            DateInRange(ld(2025, 5, 1), ld(2025, 1, 1))

    @pytest.mark.parametrize(
        "condition",
        [
            DateIs(ld(2025, 1, 1)),
            DateInRange(ld(2025, 1, 1), ld(2025, 6, 30)),
            NetworthIsAbove(6000.0, "Salary"),
            EventHappened("Buy Car"),
            IncomeIsAbove("Full-time Salary", 4000.0),
        ],
    )
    def test_dict_round_trip(self, condition):
        assert condition_from_dict(condition_to_dict(condition)) == condition

    def test_unknown_condition_type(self):
        with pytest.raises(ConfigError, match="Unknown condition type"):
            condition_from_dict({"type": "moon-is-full"})

    def test_missing_field(self):
        with pytest.raises(ConfigError, match="missing field"):
            condition_from_dict({"type": "event-happened"})

    def test_event_from_dict(self):
        event = event_from_dict(
            {
                "name": "Car Insurance",
                "type": "expense",
                "amount": 150,
                "recurrence": {"frequency": "monthly", "start_date": "2026-01-01"},
                "unlocked_by": [{"type": "event-happened", "event": "Buy Car"}],
            }
        )
        assert event == make_recurring(
            "Car Insurance",
            150,
            "expense",
            "monthly",
            ld(2026, 1, 1),
            unlocked_by=[EventHappened("Buy Car")],
        )
        assert event_from_dict(event.to_dict()) == event
