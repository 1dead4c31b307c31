# mock_tools/experiments/policy.py
# Variant assignment and event inclusion rules for every mocked experiment template.
#
# All probabilities, population sizes, offsets and amount ranges live here.
# The functions take explicit rolls in [0, 1) so they stay independent of
# timestamps and network calls.


###### IMPORT TOOLS ######
# global imports
from datetime import timedelta
from decimal import Decimal, ROUND_DOWN
from typing import Dict, Optional, Tuple
from pydantic.dataclasses import dataclass


###### VARIANTS ######
CONTROL = "control"
TEST = "test"
VARIANTS = (CONTROL, TEST)


###### POLICY ######
@dataclass(frozen=True)
class InclusionPolicy:
    name: str
    population: int
    control_share: float
    follow_up_rates: Dict[str, float]
    # None means "anywhere up to the end of the window"
    follow_up_minutes: Optional[Tuple[float, float]] = (5.0, 30.0)
    amount_range: Optional[Tuple[float, float]] = None


EXPERIMENT_EVENTS_POLICY = InclusionPolicy(
    name="experiment-events",
    population=100,
    control_share=0.5,
    follow_up_rates={CONTROL: 0.4, TEST: 0.4},
)

FUNNEL_TREND_POLICY = InclusionPolicy(
    name="funnel-with-trend-metrics",
    population=200,
    control_share=0.5,
    follow_up_rates={CONTROL: 0.50, TEST: 0.51},
    amount_range=(2.0, 20.0),
)

DATA_WAREHOUSE_POLICY = InclusionPolicy(
    name="data-warehouse",
    population=25,
    control_share=0.5,
    follow_up_rates={CONTROL: 0.40, TEST: 0.50},
    follow_up_minutes=None,
    amount_range=(2.0, 20.0),
)

# single payment sent by the data warehouse smoke test
INITIAL_PAYMENT_RANGE = (5.0, 10.0)


###### ASSIGN VARIANT ######
def assign_variant(policy: InclusionPolicy, roll: float) -> str:
    '''Local weighted coin flip between control and test.'''
    return CONTROL if roll < policy.control_share else TEST


###### FOLLOW-UP GATE ######
def should_send_follow_up(policy: InclusionPolicy, variant: str, roll: float) -> bool:
    '''Bernoulli draw with the per-variant rate; unknown variants use the control rate.'''
    rate = policy.follow_up_rates.get(variant, policy.follow_up_rates[CONTROL])
    return roll < rate


###### FOLLOW-UP OFFSET ######
def follow_up_offset(policy: InclusionPolicy, roll: float, remaining: timedelta | None = None) -> timedelta:
    '''Offset of the follow-up from the first event.

    With bounded minutes the offset is uniform in [low, high). Without bounds
    it is a uniform fraction of ``remaining``, the time left until now.
    '''
    if policy.follow_up_minutes is None:
        if remaining is None:
            raise ValueError(f"Policy {policy.name} needs the remaining window to draw an offset")
        return remaining * roll
    low, high = policy.follow_up_minutes
    return timedelta(minutes=low + roll * (high - low))


###### AMOUNT ######
def draw_amount(low: float, high: float, roll: float) -> Decimal:
    '''Uniform amount in [low, high), truncated to cents.'''
    cent = Decimal("0.01")
    value = Decimal(str(low + roll * (high - low))).quantize(cent, rounding=ROUND_DOWN)
    # float rounding can land exactly on the upper bound
    return min(value, Decimal(str(high)) - cent)
