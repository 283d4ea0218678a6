"""
Temporal status engine.

Classifies a tracked credential as healthy, warning, critical or expired from
its dates and rotation policy. Everything here is a pure function of the
record and a reference day; nothing reads the clock unless ``now`` is
omitted, and nothing raises for a record that loaded from disk.

Evaluation is day-granular: a ``datetime`` reference is reduced to its
calendar date and all counts are whole days between calendar dates.

Rules, first match wins:
    1. expiry in the past                      -> expired
    2. fewer than 7 days to expiry             -> critical
    3. fewer than 30 days to expiry            -> warning
    4. rotated longer ago than the policy      -> critical
    5. rotated more than 75% of the policy ago -> warning
    6. otherwise                               -> healthy

Rules 4 and 5 only apply when the record has both a positive policy and a
last-rotated date.

Example:
    >>> from datetime import date
    >>> record = TrackedCredential(name="k", expiresAt="2024-06-05")
    >>> assess(record, now=date(2024, 6, 1)).message
    'Expires in 4 days'
"""

from datetime import date, datetime
from typing import Any

from secrets_audit.enums import Status
from secrets_audit.exceptions import ValidationError
from secrets_audit.models.domain import StatusAssessment, TrackedCredential
from secrets_audit.utils import dates
from secrets_audit.utils.dates import parse_calendar_date, to_calendar_date

CRITICAL_EXPIRY_DAYS = 7
WARNING_EXPIRY_DAYS = 30
ROTATION_WARNING_RATIO = 0.75

UNKNOWN_STATUS_EMOJI = "⚪"


def validate_calendar_date(value: str, field: str = "date") -> date:
    """Strictly parse a ``YYYY-MM-DD`` string.

    Raises:
        ValidationError: If the value is not a real calendar date in that form
    """
    try:
        return dates.validate_calendar_date(value, field)
    except ValueError as e:
        raise ValidationError(str(e), field=field) from e


def effective_policy(credential: TrackedCredential) -> int | None:
    """Rotation policy in days, or None when absent or not positive."""
    policy = credential.rotation_policy_days
    if isinstance(policy, int) and not isinstance(policy, bool) and policy > 0:
        return policy
    return None


def calculate_age(credential: TrackedCredential, now: date | datetime | None = None) -> int | None:
    """Whole days since the last rotation, falling back to creation."""
    today = to_calendar_date(now)
    reference = parse_calendar_date(credential.last_rotated) or parse_calendar_date(
        credential.created_at
    )
    if reference is None:
        return None
    return (today - reference).days


def days_until_expiry(credential: TrackedCredential, now: date | datetime | None = None) -> int | None:
    """Whole days until expiry; negative once past, None if it never expires."""
    expires = parse_calendar_date(credential.expires_at)
    if expires is None:
        return None
    return (expires - to_calendar_date(now)).days


def _classify(
    expiry_days: int | None,
    age: int | None,
    policy: int | None,
    rotated: bool,
) -> Status:
    if expiry_days is not None:
        if expiry_days < 0:
            return Status.EXPIRED
        if expiry_days < CRITICAL_EXPIRY_DAYS:
            return Status.CRITICAL
        if expiry_days < WARNING_EXPIRY_DAYS:
            return Status.WARNING

    if policy is not None and rotated and age is not None:
        if age > policy:
            return Status.CRITICAL
        if age > policy * ROTATION_WARNING_RATIO:
            return Status.WARNING

    return Status.HEALTHY


def calculate_status(credential: TrackedCredential, now: date | datetime | None = None) -> Status:
    """Classify a credential. Total: always returns one of the four statuses."""
    today = to_calendar_date(now)
    return _classify(
        days_until_expiry(credential, today),
        calculate_age(credential, today),
        effective_policy(credential),
        parse_calendar_date(credential.last_rotated) is not None,
    )


def _plural_days(n: int) -> str:
    return "day" if n == 1 else "days"


def status_message(
    status: Status,
    expiry_days: int | None,
    age: int | None,
    policy: int | None,
) -> str:
    """Short explanation for a status.

    Args:
        status: Status produced by the classifier
        expiry_days: Days until expiry, if the credential expires
        age: Days since rotation or creation, if known
        policy: Positive rotation policy in days, if any

    Returns:
        Message such as ``"Expires in 3 days"`` or
        ``"Past rotation policy by 10 days"``
    """
    if status is Status.EXPIRED:
        return f"Expired {abs(expiry_days or 0)} days ago"

    if status is Status.CRITICAL:
        if expiry_days is not None and expiry_days < CRITICAL_EXPIRY_DAYS:
            return f"Expires in {expiry_days} {_plural_days(expiry_days)}"
        if policy is not None and age is not None and age > policy:
            return f"Past rotation policy by {age - policy} days"
        return "Critical"

    if status is Status.WARNING:
        if expiry_days is not None and expiry_days < WARNING_EXPIRY_DAYS:
            return f"Expires in {expiry_days} days"
        if policy is not None and age is not None:
            return f"{policy - age} days until rotation due"
        return "Warning"

    return "Healthy"


def status_emoji(status: Any) -> str:
    """Emoji for a status value; anything unrecognised gets a neutral marker."""
    try:
        return Status(status).emoji
    except ValueError:
        return UNKNOWN_STATUS_EMOJI


def assess(credential: TrackedCredential, now: date | datetime | None = None) -> StatusAssessment:
    """Classify a credential and explain the result.

    Args:
        credential: Record to classify
        now: Reference instant; defaults to today

    Returns:
        Status, age, days until expiry and message for the record
    """
    today = to_calendar_date(now)
    expiry_days = days_until_expiry(credential, today)
    age = calculate_age(credential, today)
    policy = effective_policy(credential)
    status = _classify(
        expiry_days, age, policy, parse_calendar_date(credential.last_rotated) is not None
    )
    return StatusAssessment(
        status=status,
        age_days=age,
        days_until_expiry=expiry_days,
        message=status_message(status, expiry_days, age, policy),
    )
