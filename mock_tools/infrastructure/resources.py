# mock_tools/infrastructure/resources.py
# This module manages the external collaborators of one command run: the PostHog event sink and the data warehouse engine.


###### IMPORT TOOLS ######
# global imports
import logging
from sqlalchemy.ext.asyncio import AsyncEngine

# local imports
from mock_tools.config import Settings, get_settings
from mock_tools.data_base.db import create_store_engine
from mock_tools.data_base.crud import check_connection
from mock_tools.infrastructure.event_sink import EventSink


###### LOGGER ######
logger = logging.getLogger("mock_tools.infrastructure.resources")

###### RESOURCES ######
class Resources:
    """Acquires the event sink (and the store when asked) and releases them on every exit path."""
    def __init__(self, settings: Settings | None = None, use_store: bool = False):
        self.settings = settings or get_settings()
        self.use_store = use_store
        self.sink: EventSink | None = None
        self.engine: AsyncEngine | None = None
        self._started = False

    async def start(self):
        """Initialize resources if not already started."""
        if self._started:
            return
        self.sink = EventSink.from_settings(self.settings)
        self._started = True
        if self.use_store:
            self.engine = create_store_engine(self.settings.warehouse_db_url)
            await check_connection(self.engine)
        logger.info("Resources started.")

    async def stop(self):
        """Drain the sink and close the store if they were started."""
        if not self._started:
            return
        try:
            if self.sink:
                await self.sink.shutdown()
        finally:
            if self.engine:
                await self.engine.dispose()
                self.engine = None
            self.sink = None
            self._started = False
            logger.info("Resources stopped.")

    async def __aenter__(self) -> "Resources":
        try:
            await self.start()
        except BaseException:
            await self.stop()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()
        return False
