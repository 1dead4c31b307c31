# mock_tools/experiments/templates.py
# This module generates the mocked experiment traffic for every CLI command.


####### IMPORT TOOLS ########
# global imports
import random
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Tuple
from sqlalchemy.ext.asyncio import AsyncEngine

# local imports
from mock_tools.config import Settings, get_settings
from mock_tools.data_base.crud import (
    ensure_payments_table,
    insert_payment,
    get_payments_for_user,
)
from mock_tools.experiments.policy import (
    CONTROL,
    EXPERIMENT_EVENTS_POLICY,
    FUNNEL_TREND_POLICY,
    DATA_WAREHOUSE_POLICY,
    INITIAL_PAYMENT_RANGE,
    assign_variant,
    should_send_follow_up,
    follow_up_offset,
    draw_amount,
)
from mock_tools.experiments.schemas import (
    CapturedEvent,
    ExperimentType,
    GenerationSummary,
    PaymentRecord,
)
from mock_tools.experiments.utils import (
    generate_distinct_id,
    utc_now,
    random_timestamp_between,
    follow_up_timestamp,
    format_mysql_timestamp,
)
from mock_tools.infrastructure.event_sink import EventSink


####### LOGGER ########
logger = logging.getLogger("mock_tools.experiments.templates")

PAGEVIEW = "$pageview"
FLAG_CALLED = "$feature_flag_called"
PRODUCTS_URL = "/products"


######## HELPERS ########
def experiment_event_names(experiment_type: ExperimentType | str, flag: str) -> Tuple[str, str]:
    '''First and follow-up event names of the funnel and trend templates.'''
    if ExperimentType(experiment_type) is ExperimentType.FUNNEL:
        return PAGEVIEW, f"[{flag}] signup"
    return f"[{flag}] event one", f"[{flag}] event two"


def exposure_properties(flag: str, variant: str, event: str) -> Dict[str, Any]:
    properties: Dict[str, Any] = {f"$feature/{flag}": variant}
    if event == PAGEVIEW:
        properties["$current_url"] = PRODUCTS_URL
    return properties


def _check_window(start_date: datetime, now: datetime) -> None:
    if start_date >= now:
        raise ValueError(f"Start date {start_date.isoformat()} must be before {now.isoformat()}")


def _send(sink: EventSink, event: CapturedEvent, variant: str | None = None) -> None:
    sink.capture(event)
    if variant is None:
        logger.info("Sent %s for %s at %s", event.event, event.distinct_id, event.iso_timestamp)
    else:
        logger.info(
            "Sent %s for %s at %s (%s group)",
            event.event, event.distinct_id, event.iso_timestamp, variant,
        )


async def _evaluate_flag(sink: EventSink, flag: str, distinct_id: str, summary: GenerationSummary) -> str:
    '''Live flag evaluation; anything but a string variant falls back to control.'''
    variant = await sink.get_flag_variant(flag, distinct_id)
    summary.flag_evaluations += 1
    if not isinstance(variant, str):
        logger.warning(
            "Flag %s evaluated to %r for %s, using %s", flag, variant, distinct_id, CONTROL
        )
        return CONTROL
    return variant


async def _record_payment(engine: AsyncEngine, distinct_id: str, paid_at: datetime, amount) -> PaymentRecord:
    payment = PaymentRecord(
        timestamp=format_mysql_timestamp(paid_at),
        distinct_id=distinct_id,
        amount=amount,
    )
    payment = await insert_payment(engine, payment)
    logger.info(
        "Inserted payment %s of %s for %s at %s",
        payment.id, payment.amount, distinct_id, payment.timestamp,
    )
    return payment


######## MOCK EXPERIMENT EVENTS ########
async def mock_experiment_events(
    sink: EventSink,
    experiment_type: ExperimentType | str,
    flag: str,
    start_date: datetime,
    send_initial_events: bool = False,
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
    settings: Settings | None = None,
) -> GenerationSummary:
    '''Funnel ($pageview -> signup) or trend (event one -> event two) traffic split 50/50.'''
    settings = settings or get_settings()
    rng = rng or random.Random()
    now = now or utc_now()
    first_event, second_event = experiment_event_names(experiment_type, flag)
    summary = GenerationSummary()

    if send_initial_events:
        distinct_id = generate_distinct_id(rng)
        timestamp = now - timedelta(hours=settings.INITIAL_EVENTS_HOURS_AGO)
        for event in (first_event, second_event):
            _send(sink, CapturedEvent(
                event=event,
                distinct_id=distinct_id,
                timestamp=timestamp,
                properties=exposure_properties(flag, CONTROL, event),
            ))
        summary.users = 1
        summary.first_events = 1
        summary.follow_up_events = 1
        logger.info("Sent initial events for %s", flag)
        return summary

    _check_window(start_date, now)
    policy = EXPERIMENT_EVENTS_POLICY
    for _ in range(policy.population):
        distinct_id = generate_distinct_id(rng)
        variant = assign_variant(policy, rng.random())
        first_at = random_timestamp_between(start_date, now, rng.random())

        _send(sink, CapturedEvent(
            event=first_event,
            distinct_id=distinct_id,
            timestamp=first_at,
            properties=exposure_properties(flag, variant, first_event),
        ), variant)
        summary.users += 1
        summary.first_events += 1

        if should_send_follow_up(policy, variant, rng.random()):
            second_at = follow_up_timestamp(first_at, follow_up_offset(policy, rng.random()), now)
            _send(sink, CapturedEvent(
                event=second_event,
                distinct_id=distinct_id,
                timestamp=second_at,
                properties=exposure_properties(flag, variant, second_event),
            ), variant)
            summary.follow_up_events += 1

    logger.info("Sent events for %s experiment", flag)
    return summary


######## MOCK FUNNEL EXPERIMENT WITH TREND METRICS ########
async def mock_funnel_experiment_with_trend_metrics(
    sink: EventSink,
    flag: str,
    start_date: datetime,
    send_initial_events: bool = False,
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
    settings: Settings | None = None,
) -> GenerationSummary:
    '''Funnel $pageview -> signup plus a purchase event carrying an amount for trend metrics.

    Variants are assigned locally and reported with a backdated
    $feature_flag_called event, so exposure lines up with the first event.
    '''
    settings = settings or get_settings()
    rng = rng or random.Random()
    now = now or utc_now()
    policy = FUNNEL_TREND_POLICY
    signup, purchase = f"[{flag}] signup", f"[{flag}] purchase"
    summary = GenerationSummary()

    if send_initial_events:
        distinct_id = generate_distinct_id(rng)
        variant = await _evaluate_flag(sink, flag, distinct_id, summary)
        timestamp = now - timedelta(hours=settings.INITIAL_VARIANT_HOURS_AGO)
        amount = draw_amount(*policy.amount_range, rng.random())
        for event in (PAGEVIEW, signup, purchase):
            properties = exposure_properties(flag, variant, event)
            if event == purchase:
                properties["amount"] = float(amount)
            _send(sink, CapturedEvent(
                event=event, distinct_id=distinct_id, timestamp=timestamp, properties=properties,
            ), variant)
        summary.users = 1
        summary.first_events = 1
        summary.follow_up_events = 2
        logger.info("Sent initial events for %s", flag)
        return summary

    _check_window(start_date, now)
    for _ in range(policy.population):
        distinct_id = generate_distinct_id(rng)
        variant = assign_variant(policy, rng.random())
        first_at = random_timestamp_between(start_date, now, rng.random())

        _send(sink, CapturedEvent(
            event=FLAG_CALLED,
            distinct_id=distinct_id,
            timestamp=first_at,
            properties={"$feature_flag": flag, "$feature_flag_response": variant},
        ), variant)
        _send(sink, CapturedEvent(
            event=PAGEVIEW,
            distinct_id=distinct_id,
            timestamp=first_at,
            properties=exposure_properties(flag, variant, PAGEVIEW),
        ), variant)
        summary.users += 1
        summary.first_events += 1

        if not should_send_follow_up(policy, variant, rng.random()):
            continue
        signup_at = follow_up_timestamp(first_at, follow_up_offset(policy, rng.random()), now)
        purchase_at = follow_up_timestamp(signup_at, follow_up_offset(policy, rng.random()), now)
        amount = draw_amount(*policy.amount_range, rng.random())
        _send(sink, CapturedEvent(
            event=signup,
            distinct_id=distinct_id,
            timestamp=signup_at,
            properties=exposure_properties(flag, variant, signup),
        ), variant)
        _send(sink, CapturedEvent(
            event=purchase,
            distinct_id=distinct_id,
            timestamp=purchase_at,
            properties={**exposure_properties(flag, variant, purchase), "amount": float(amount)},
        ), variant)
        summary.follow_up_events += 2

    logger.info("Sent funnel and trend events for %s experiment", flag)
    return summary


######## MOCK DATA WAREHOUSE EXPERIMENT ########
async def mock_data_warehouse_experiment(
    sink: EventSink,
    engine: AsyncEngine,
    flag: str,
    start_date: datetime,
    send_initial_events: bool = False,
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
    settings: Settings | None = None,
) -> GenerationSummary:
    '''Exposure events in PostHog, conversions as rows of the payments table.

    Variants come from live flag evaluations. PostHog records those
    evaluations at the real time while the $pageview exposure is backdated;
    the gap between the two is expected.
    '''
    settings = settings or get_settings()
    rng = rng or random.Random()
    now = now or utc_now()
    policy = DATA_WAREHOUSE_POLICY
    summary = GenerationSummary()

    await ensure_payments_table(engine)

    if send_initial_events:
        distinct_id = generate_distinct_id(rng)
        variant = await _evaluate_flag(sink, flag, distinct_id, summary)
        paid_at = now - timedelta(hours=settings.INITIAL_VARIANT_HOURS_AGO)
        await _record_payment(engine, distinct_id, paid_at, draw_amount(*INITIAL_PAYMENT_RANGE, rng.random()))
        stored = await get_payments_for_user(engine, distinct_id)
        logger.info("Payments stored for %s (%s group): %s", distinct_id, variant, stored)
        summary.users = 1
        summary.payments = 1
        logger.info("Sent initial data warehouse payment for %s", flag)
        return summary

    _check_window(start_date, now)
    for _ in range(policy.population):
        distinct_id = generate_distinct_id(rng)
        variant = await _evaluate_flag(sink, flag, distinct_id, summary)
        first_at = random_timestamp_between(start_date, now, rng.random())

        _send(sink, CapturedEvent(
            event=PAGEVIEW,
            distinct_id=distinct_id,
            timestamp=first_at,
            properties=exposure_properties(flag, variant, PAGEVIEW),
        ), variant)
        summary.users += 1
        summary.first_events += 1

        if should_send_follow_up(policy, variant, rng.random()):
            offset = follow_up_offset(policy, rng.random(), remaining=now - first_at)
            paid_at = follow_up_timestamp(first_at, offset, now)
            amount = draw_amount(*policy.amount_range, rng.random())
            await _record_payment(engine, distinct_id, paid_at, amount)
            summary.payments += 1

    logger.info("Sent data warehouse experiment data for %s", flag)
    return summary
