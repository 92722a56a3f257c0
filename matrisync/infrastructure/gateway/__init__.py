"""Backend gateway implementation: SQLAlchemy storage plus change channels."""

from .change_feed import ChangeFeed, InProcessChannel
from .sql_gateway import SqlGateway

__all__ = ["ChangeFeed", "InProcessChannel", "SqlGateway"]
