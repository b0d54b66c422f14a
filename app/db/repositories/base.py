"""
Base Repository for local database operations.

Each repository receives the shared Database instance and opens one session
per operation; no session outlives the call that created it.
"""

import functools
import logging
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.connection import Database

logger = logging.getLogger(__name__)


def log_operation(operation_name: str | None = None) -> Callable:
    """
    Decorator for logging repository operations.

    Args:
        operation_name: Optional custom name for the operation

    Returns:
        Decorated function with logging
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            op_name = operation_name or f"{self.__class__.__name__}.{func.__name__}"
            logger.debug(f"Starting operation: {op_name}")

            try:
                result = await func(self, *args, **kwargs)
                logger.debug(f"Operation successful: {op_name}")
                return result
            except Exception as e:
                logger.error(f"Operation failed: {op_name} - {e}")
                raise

        return wrapper

    return decorator


class BaseRepository:
    """
    Base repository with session handling shared by all repositories.
    """

    def __init__(self, database: Database):
        """
        Initialize the base repository.

        Args:
            database: Initialized Database instance
        """
        self.database = database
        self._repository_name: str = self.__class__.__name__

    def get_session(self) -> AsyncSession:
        """
        Get a new database session.

        Returns:
            AsyncSession: Session to be used as an async context manager
        """
        return self.database.get_session()

    def __repr__(self) -> str:
        return f"<{self._repository_name}(url={self.database.url})>"
