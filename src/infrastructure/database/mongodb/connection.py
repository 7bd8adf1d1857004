# File: infrastructure/database/mongodb/connection.py

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from common.config.settings import settings
from common.exceptions.base_exception import ServiceUnavailableException
from common.logging.logger import log_info, log_error, log_warning


class MongoDBConnection:
    """Process-wide motor client. Follow toggles need multi-document transactions, so a replica set is expected."""

    _client: AsyncIOMotorClient = None
    _db: AsyncIOMotorDatabase = None

    @classmethod
    async def connect(cls):
        if cls._client is not None:
            return

        timeout = settings.MONGO_TIMEOUT
        log_info("Attempting MongoDB connection", extra={"db": settings.MONGO_DB, "timeout": timeout})
        client = AsyncIOMotorClient(settings.MONGO_URI, serverSelectionTimeoutMS=timeout, tz_aware=True)
        try:
            hello = await client.admin.command("hello")
        except PyMongoError as e:
            client.close()
            log_error("MongoDB connection failed", extra={"db": settings.MONGO_DB, "timeout": timeout, "error": str(e)}, exc_info=True)
            raise ServiceUnavailableException("MongoDB unavailable")

        if not hello.get("setName") and hello.get("msg") != "isdbgrid":
            log_warning("MongoDB is a standalone server; transactions will fail", extra={"db": settings.MONGO_DB})

        cls._client = client
        cls._db = client[settings.MONGO_DB]
        log_info("MongoDB connection established", extra={"db": settings.MONGO_DB, "replica_set": hello.get("setName")})

    @classmethod
    async def disconnect(cls):
        if cls._client is not None:
            cls._client.close()
            log_info("MongoDB connection closed", extra={"db": settings.MONGO_DB})
            cls._client = None
            cls._db = None

    @classmethod
    def get_client(cls) -> AsyncIOMotorClient:
        if cls._client is None:
            log_error("Attempt to access MongoDB before connection was established")
            raise ServiceUnavailableException("MongoDB not connected. Call connect() first.")
        return cls._client

    @classmethod
    def get_db(cls) -> AsyncIOMotorDatabase:
        if cls._db is None:
            log_error("Attempt to access MongoDB before connection was established")
            raise ServiceUnavailableException("MongoDB not connected. Call connect() first.")
        return cls._db
