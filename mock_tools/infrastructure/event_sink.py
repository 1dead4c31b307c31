# mock_tools/infrastructure/event_sink.py
# This module wraps the PostHog client used to capture mocked events and evaluate feature flags.


###### IMPORT TOOLS ######
# global imports
import asyncio
import logging
from posthog import Posthog

# local imports
from mock_tools.config import Settings
from mock_tools.experiments.schemas import CapturedEvent


###### LOGGER ######
logger = logging.getLogger("mock_tools.infrastructure.event_sink")


###### EVENT SINK ######
class EventSink:
    """Thin layer over the PostHog client; capture is queued, flag evaluation and shutdown block."""
    def __init__(self, client: Posthog):
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "EventSink":
        """Build a client that accepts backdated timestamps."""
        client = Posthog(
            settings.POSTHOG_API_KEY,
            host=settings.POSTHOG_HOST,
            historical_migration=True,
        )
        return cls(client)

    def capture(self, event: CapturedEvent) -> None:
        '''Queue one event for delivery.'''
        self.client.capture(
            event=event.event,
            distinct_id=event.distinct_id,
            timestamp=event.timestamp,
            properties=dict(event.properties),
        )
        logger.debug("Queued %s for %s", event.event, event.distinct_id)

    async def get_flag_variant(self, flag_key: str, distinct_id: str) -> str | bool | None:
        '''Evaluate a feature flag for a user against the live PostHog instance.'''
        return await asyncio.to_thread(self.client.get_feature_flag, flag_key, distinct_id)

    async def shutdown(self) -> None:
        '''Flush queued events and stop the consumer threads.'''
        await asyncio.to_thread(self.client.shutdown)
        logger.info("Event sink flushed.")
