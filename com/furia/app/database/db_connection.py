import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession

from com.furia.app.config.config import Config

logger = logging.getLogger(__name__)


class DBConnection:
    _client = None

    def __init__(self):
        self.config = Config()
        self.client = self.get_client()
        self.db = self.client[self.config.mongodb_db]
        self.users = self.db[self.config.mongodb_users_collection]
        self.profiles = self.db[self.config.mongodb_profiles_collection]

    @classmethod
    def get_client(cls):
        """Return the process-wide Mongo client, creating it on first use"""
        if cls._client is None:
            config = Config()
            logger.info(f"Connecting to MongoDB database '{config.mongodb_db}'")
            cls._client = AsyncIOMotorClient(config.mongodb_uri)
        return cls._client

    @classmethod
    def set_client(cls, client) -> None:
        """Replace the shared client (used by tests and alternative deployments)"""
        cls._client = client

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Optional[AsyncIOMotorClientSession]]:
        """Run the enclosed writes in a single transaction.

        Yields the session to pass to every operation, or None when
        transactions are disabled (standalone servers do not support them).
        """
        if not self.config.mongodb_transactions:
            yield None
            return

        async with await self.client.start_session() as session:
            async with session.start_transaction():
                yield session
