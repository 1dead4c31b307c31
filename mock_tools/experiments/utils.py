# mock_tools/experiments/utils.py
# This module contains helpers for synthetic users and timestamps: id minting, window sampling and formatting.


####### IMPORT TOOLS ########
# global imports
import random
import string
from datetime import datetime, timedelta, timezone


ID_CHARACTERS = string.ascii_uppercase + string.ascii_lowercase + string.digits


##### SYNTHETIC USERS ######
def generate_random_string(length: int, rng: random.Random | None = None) -> str:
    rng = rng or random
    return "".join(rng.choice(ID_CHARACTERS) for _ in range(length))


def generate_distinct_id(rng: random.Random | None = None) -> str:
    '''Fresh synthetic user id, e.g. test-user-Ab3dE9xYz0@example.com.'''
    return f"test-user-{generate_random_string(10, rng)}@example.com"


##### WINDOW ######
def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def default_start_date(days: int, now: datetime | None = None) -> datetime:
    return (now or utc_now()) - timedelta(days=days)


def parse_start_date(value: str, now: datetime | None = None) -> datetime:
    '''Parse an ISO-8601 start date; naive values are UTC and the result must be before now.'''
    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as e:
        raise ValueError(f"Invalid start date '{value}': expected ISO-8601") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    parsed = parsed.astimezone(timezone.utc)
    now = now or utc_now()
    if parsed >= now:
        raise ValueError(f"Start date {value} must be before now ({format_iso(now)})")
    return parsed


def random_timestamp_between(start: datetime, end: datetime, roll: float) -> datetime:
    '''Point at fraction ``roll`` of the way from start to end.'''
    return start + (end - start) * roll


def follow_up_timestamp(first: datetime, offset: timedelta, now: datetime) -> datetime:
    '''First event time plus offset, never later than now.'''
    return min(first + offset, now)


##### FORMATTING ######
def format_iso(moment: datetime) -> str:
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_mysql_timestamp(moment: datetime) -> str:
    '''UTC timestamp as YYYY-MM-DD HH:MM:SS for DATETIME columns.'''
    utc = moment.astimezone(timezone.utc)
    return (
        f"{utc.year:04d}-{utc.month:02d}-{utc.day:02d} "
        f"{utc.hour:02d}:{utc.minute:02d}:{utc.second:02d}"
    )
