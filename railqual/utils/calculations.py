"""Status and priority calculations for qualification records.

Every function here is pure: the reference date is always passed in, so a
fleet-wide pass evaluates all records against the same day.
"""

from datetime import date
from dateutil.relativedelta import relativedelta

DEFAULT_INTERVAL_MONTHS = 120

DUE_THRESHOLD_DAYS = 30
DUE_SOON_THRESHOLD_DAYS = 90

STATUS_UNKNOWN = 'unknown'
STATUS_CURRENT = 'current'
STATUS_DUE = 'due'
STATUS_DUE_SOON = 'due_soon'
STATUS_OVERDUE = 'overdue'
STATUS_EXEMPT = 'exempt'

STATUSES = (
    STATUS_UNKNOWN,
    STATUS_CURRENT,
    STATUS_DUE,
    STATUS_DUE_SOON,
    STATUS_OVERDUE,
    STATUS_EXEMPT,
)

# Most urgent first; used to order listings.
STATUS_URGENCY = {
    STATUS_OVERDUE: 1,
    STATUS_DUE: 2,
    STATUS_DUE_SOON: 3,
    STATUS_UNKNOWN: 4,
    STATUS_CURRENT: 5,
    STATUS_EXEMPT: 6,
}

PRIORITY_LABELS = {
    1: 'Critical',
    2: 'High',
    3: 'Medium',
    4: 'Low',
}


def status_for(is_exempt, next_due_date, now):
    """Lifecycle status from exemption flag, due date and reference date."""
    if is_exempt:
        return STATUS_EXEMPT
    if next_due_date is None:
        return STATUS_UNKNOWN

    days = (next_due_date - now).days
    if days < 0:
        return STATUS_OVERDUE
    if days <= DUE_THRESHOLD_DAYS:
        return STATUS_DUE
    if days <= DUE_SOON_THRESHOLD_DAYS:
        return STATUS_DUE_SOON
    return STATUS_CURRENT


def derive_status(record, now):
    """Lifecycle status of a qualification record as of now."""
    return status_for(record.is_exempt, record.next_due_date, now)


def effective_interval(record, qualification_type=None):
    """Interval in months: record override, then type default, then 120."""
    if record is not None and record.interval_months:
        return record.interval_months
    if qualification_type is not None and qualification_type.default_interval_months:
        return qualification_type.default_interval_months
    return DEFAULT_INTERVAL_MONTHS


def compute_next_due(completed_date, interval_months=None):
    """Next due and expiry dates for a completion.

    Calendar-month addition keeps the day of month and clamps to the last day
    of a shorter target month. Expiry is December 31 of the due year.
    """
    interval = interval_months or DEFAULT_INTERVAL_MONTHS
    next_due = completed_date + relativedelta(months=interval)
    expiry = date(next_due.year, 12, 31)
    return next_due, expiry


def score_priority(overdue_count, due_count, due_soon_count):
    """Scheduling priority (1 most urgent) and the reason behind it."""
    if overdue_count > 0:
        return 1, f'{overdue_count} qualification(s) overdue'
    if due_count > 0:
        return 2, f'{due_count} qualification(s) due within {DUE_THRESHOLD_DAYS} days'
    if due_soon_count > 0:
        return 3, f'{due_soon_count} qualification(s) due within {DUE_SOON_THRESHOLD_DAYS} days'
    return 4, 'No urgent qualification needs'
