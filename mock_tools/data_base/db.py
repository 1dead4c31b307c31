# mock_tools/data_base/db.py
# This module sets up the asynchronous connection to the data warehouse using SQLAlchemy.


###### IMPORT TOOLS ######
# global imports
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import DeclarativeBase

# local imports
from mock_tools.config import get_settings


###### CREATE ASYNC ENGINE ######
def create_store_engine(url: str | None = None) -> AsyncEngine:
    '''Create a new engine for one command run; the caller disposes it.'''
    return create_async_engine(url or get_settings().warehouse_db_url, pool_pre_ping=True)


###### BASE CLASS FOR MODELS ######
class Base(DeclarativeBase):
    __abstract__ = True
