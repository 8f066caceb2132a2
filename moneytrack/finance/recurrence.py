"""
Recurrence Engine

Expands recurring rules into concrete transactions up to "today".

Each rule carries a watermark (last_processed): the date of the last
occurrence already materialized. Processing starts one step after the
watermark (or at start_date for a rule that never fired), walks forward
with calendar-aware steps and stops at today, the rule's end date, or
the occurrence cap, whichever comes first.

Generated transactions get an id derived from (rule id, occurrence
date), so storing the same occurrence twice is detectable.
"""

import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable, Optional

import structlog
from dateutil.relativedelta import relativedelta

from moneytrack.finance.periods import DateLike, as_date
from moneytrack.models.finance import (
    RecurringFrequency,
    RecurringTransaction,
    Transaction,
    TransactionType,
)
from moneytrack.models.reports import RecurringProcessResult


logger = structlog.get_logger(__name__)

ZERO = Decimal("0")
DEFAULT_MAX_OCCURRENCES = 100

OCCURRENCE_NAMESPACE = uuid.UUID("6f1c2a8e-4b7d-5e3f-9a10-2c4d6e8f0a1b")

_STEPS = {
    RecurringFrequency.DAILY: relativedelta(days=1),
    RecurringFrequency.WEEKLY: relativedelta(weeks=1),
    RecurringFrequency.BIWEEKLY: relativedelta(weeks=2),
    RecurringFrequency.MONTHLY: relativedelta(months=1),
    RecurringFrequency.YEARLY: relativedelta(years=1),
}


class RecurrenceError(ValueError):
    """Raised when recurrence processing is asked to do something invalid."""
    pass


def next_occurrence(current: date, frequency: RecurringFrequency) -> date:
    """
    The occurrence after `current`.

    Month and year steps clamp to the end of shorter months, so a
    monthly rule on Jan 31 continues on Feb 29 (leap year) and from
    there on the 29th.
    """
    try:
        step = _STEPS[RecurringFrequency(frequency)]
    except ValueError as e:
        raise RecurrenceError(f"Unknown frequency: {frequency}") from e
    return current + step


def occurrence_id(rule_id: str, occurrence: date) -> str:
    """Stable transaction id for one occurrence of one rule."""
    return str(uuid.uuid5(OCCURRENCE_NAMESPACE, f"{rule_id}:{occurrence.isoformat()}"))


def first_due(rule: RecurringTransaction) -> date:
    """Where processing of this rule resumes."""
    if rule.last_processed is None:
        return rule.start_date
    return next_occurrence(rule.last_processed, rule.frequency)


def materialize(rule: RecurringTransaction, occurrence: date) -> Transaction:
    now = datetime.now()
    return Transaction(
        id=occurrence_id(rule.id, occurrence),
        type=rule.type,
        amount=rule.amount,
        account_id=rule.account_id,
        to_account_id=rule.to_account_id,
        category_id=rule.category_id,
        date=datetime.combine(occurrence, time.min),
        note=rule.note,
        is_recurring_generated=True,
        recurring_id=rule.id,
        created_at=now,
        updated_at=now,
    )


def process_rule(
    rule: RecurringTransaction,
    today: DateLike,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> tuple[list[Transaction], Optional[RecurringTransaction], bool]:
    """
    Materialize the due occurrences of a single rule.

    Returns (transactions, updated rule or None, capped). The updated
    rule is None when nothing was generated; capped is True when the
    loop stopped at max_occurrences with occurrences still due.
    """
    if max_occurrences < 1:
        raise RecurrenceError("max_occurrences must be at least 1")

    today = as_date(today)
    if not rule.is_enabled or rule.start_date > today:
        return [], None, False

    anchor = first_due(rule)
    generated: list[Transaction] = []
    last_generated: Optional[date] = None

    while anchor <= today and len(generated) < max_occurrences:
        if rule.end_date and anchor > rule.end_date:
            break
        generated.append(materialize(rule, anchor))
        last_generated = anchor
        anchor = next_occurrence(anchor, rule.frequency)

    if last_generated is None:
        return [], None, False

    capped = (
        len(generated) >= max_occurrences
        and anchor <= today
        and (rule.end_date is None or anchor <= rule.end_date)
    )
    updated = rule.model_copy(
        update={"last_processed": last_generated, "updated_at": datetime.now()}
    )
    return generated, updated, capped


def process_recurring(
    rules: Iterable[RecurringTransaction],
    today: DateLike,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> RecurringProcessResult:
    """
    Process every enabled rule against today.

    Pure: nothing is stored. The caller must persist new_transactions
    and updated_rules together (see LedgerStorageInterface.apply_recurring_result).
    Feeding updated_rules back in with the same today generates nothing.
    """
    if max_occurrences < 1:
        raise RecurrenceError("max_occurrences must be at least 1")

    today = as_date(today)
    result = RecurringProcessResult(processed_on=today)

    for rule in rules:
        transactions, updated, capped = process_rule(rule, today, max_occurrences)
        if updated is None:
            continue

        result.new_transactions.extend(transactions)
        result.updated_rules.append(updated)
        logger.info(
            "recurring_rule_processed",
            rule_id=rule.id,
            generated=len(transactions),
            last_processed=updated.last_processed.isoformat(),
        )

        if capped:
            result.capped_rule_ids.append(rule.id)
            logger.warning(
                "recurring_backlog_capped",
                rule_id=rule.id,
                cap=max_occurrences,
                resumes_after=updated.last_processed.isoformat(),
            )

    return result


def upcoming_occurrences(
    rule: RecurringTransaction,
    count: int = 5,
    today: Optional[DateLike] = None,
) -> list[date]:
    """
    Preview the next `count` occurrences the rule would materialize.

    Starts at the same anchor processing would use: start_date itself
    for a rule that never fired (not one step after it), otherwise one
    step past the watermark. When today is given, occurrences before
    today are skipped so only pending and future dates are listed.
    Stops at the end date. Disabled rules have no upcoming occurrences.
    """
    if not rule.is_enabled or count <= 0:
        return []

    earliest = as_date(today) if today is not None else None
    occurrences = []
    current = first_due(rule)
    while len(occurrences) < count:
        if rule.end_date and current > rule.end_date:
            break
        if earliest is None or current >= earliest:
            occurrences.append(current)
        current = next_occurrence(current, rule.frequency)
    return occurrences


def count_occurrences_between(
    rule: RecurringTransaction,
    start: DateLike,
    end: DateLike,
) -> int:
    """Scheduled occurrences of the rule inside [start, end], ignoring the watermark."""
    start = as_date(start)
    end = as_date(end)
    if rule.end_date:
        end = min(end, rule.end_date)
    if end < start or end < rule.start_date:
        return 0

    count = 0
    current = rule.start_date
    while current <= end:
        if current >= start:
            count += 1
        current = next_occurrence(current, rule.frequency)
    return count


def estimate_recurring_total(
    rules: Iterable[RecurringTransaction],
    start: DateLike,
    end: DateLike,
    type_filter: Optional[TransactionType] = None,
) -> Decimal:
    """Expected recurring cash flow over [start, end] from enabled rules."""
    total = ZERO
    for rule in rules:
        if not rule.is_enabled:
            continue
        if type_filter is not None and rule.type != type_filter:
            continue
        total += rule.amount * count_occurrences_between(rule, start, end)
    return total
