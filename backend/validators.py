"""
Field validation for booking requests

Each field has an ordered tuple of pure predicates ``(value) -> error|None``.
The first failing predicate of a field reports that field; all fields are
checked so a caller gets every problem at once.
"""
import uuid
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from backend.date_window import to_utc

GENDERS = ('male', 'female', 'other')
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50
MIN_AGE = 18
MAX_AGE = 75
LAUNCHPAD_ID_LENGTH = 24

Predicate = Callable[[object], Optional[str]]


def required(value) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return "is required"
    return None


def name_length(value) -> Optional[str]:
    if not MIN_NAME_LENGTH <= len(value) <= MAX_NAME_LENGTH:
        return f"must be between {MIN_NAME_LENGTH} and {MAX_NAME_LENGTH} characters"
    return None


def known_gender(value) -> Optional[str]:
    if value not in GENDERS:
        return f"must be one of {', '.join(GENDERS)}"
    return None


def adult_age(value, today: Optional[date] = None) -> Optional[str]:
    today = today or datetime.now(timezone.utc).date()
    birthday = value.date() if isinstance(value, datetime) else value
    age = today.year - birthday.year
    if not MIN_AGE <= age <= MAX_AGE:
        return f"age must be between {MIN_AGE} and {MAX_AGE}"
    return None


def launchpad_id_length(value) -> Optional[str]:
    if len(value) != LAUNCHPAD_ID_LENGTH:
        return f"must be {LAUNCHPAD_ID_LENGTH} characters"
    return None


def valid_uuid(value) -> Optional[str]:
    if isinstance(value, uuid.UUID):
        return None
    try:
        uuid.UUID(str(value))
    except ValueError:
        return "must be a valid UUID"
    return None


def future_date(value, now: Optional[datetime] = None) -> Optional[str]:
    now = now or datetime.now(timezone.utc)
    if to_utc(value) <= now:
        return "must be in the future"
    return None


BOOKING_REQUEST_RULES: Dict[str, Sequence[Predicate]] = {
    'first_name': (required, name_length),
    'last_name': (required, name_length),
    'gender': (required, known_gender),
    'birthday': (required, adult_age),
    'launchpad_id': (required, launchpad_id_length),
    'destination_id': (required, valid_uuid),
    'launch_date': (required, future_date),
}


def validate(payload: dict, rules: Dict[str, Sequence[Predicate]]) -> List[str]:
    """Apply ``rules`` to ``payload`` and return one message per failing field"""
    problems = []
    for field_name, predicates in rules.items():
        value = payload.get(field_name)
        for predicate in predicates:
            error = predicate(value)
            if error:
                problems.append(f"{field_name} {error}")
                break
    return problems


def validate_booking_request(payload: dict) -> List[str]:
    return validate(payload, BOOKING_REQUEST_RULES)
