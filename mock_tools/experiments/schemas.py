# mock_tools/experiments/schemas.py
# This module defines the records produced while mocking experiment traffic.


###### IMPORT TOOLS ######
# global imports
from enum import Enum
from decimal import Decimal
from datetime import datetime
from typing import Dict, Any, Optional
from pydantic import Field
from pydantic.dataclasses import dataclass

# local imports
from mock_tools.experiments.utils import format_iso


###### EXPERIMENT TYPES ######
class ExperimentType(str, Enum):
    FUNNEL = "funnel"
    TREND = "trend"


###### EVENTS ######
# Single analytics event handed to the event sink
@dataclass
class CapturedEvent:
    event: str
    distinct_id: str
    timestamp: datetime
    properties: Dict[str, Any] = Field(default_factory=dict)

    @property
    def iso_timestamp(self) -> str:
        '''UTC timestamp as YYYY-MM-DDTHH:MM:SS.mmmZ.'''
        return format_iso(self.timestamp)


###### PAYMENTS ######
# Row of the payments table; timestamp is already formatted for MySQL
@dataclass
class PaymentRecord:
    timestamp: str
    distinct_id: str
    amount: Decimal
    id: Optional[int] = None


###### SUMMARY ######
# Counters reported at the end of every command
@dataclass
class GenerationSummary:
    users: int = 0
    first_events: int = 0
    follow_up_events: int = 0
    payments: int = 0
    flag_evaluations: int = 0
