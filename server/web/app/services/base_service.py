"""
Base class for database-backed services.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession


class BaseService:
    """Holds the request's session and a per-service logger."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__module__)
