"""
app/db/mongo.py

Purpose: MongoDB connection setup

- One Motor client per process, opened at startup
- Aware UTC datetimes on read (tz_aware), so expiry comparisons never mix naive and aware values
- Single collection: otp_codes
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from typing import Optional
import asyncio
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

OTP_CODES_COLLECTION = "otp_codes"
CONNECT_ATTEMPTS = 3
FIRST_RETRY_DELAY = 2

_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None


def _new_client() -> AsyncIOMotorClient:
    return AsyncIOMotorClient(
        settings.MONGODB_URL,
        serverSelectionTimeoutMS=5000,
        connectTimeoutMS=10000,
        retryReads=True,
        tz_aware=True,
    )


async def connect_to_mongo():
    """
    Opens the Motor client and pings the server, retrying with a doubling delay.

    Raises:
        ConnectionError: the server stayed unreachable after every attempt
    """
    global _client, _database

    if _client is not None:
        logger.warning("MongoDB client already initialized")
        return

    delay = FIRST_RETRY_DELAY
    for attempt in range(1, CONNECT_ATTEMPTS + 1):
        client = _new_client()
        try:
            await client.admin.command("ping")
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            client.close()
            logger.error(f"MongoDB unreachable (attempt {attempt}/{CONNECT_ATTEMPTS}): {e}")
            if attempt == CONNECT_ATTEMPTS:
                raise ConnectionError("Could not establish MongoDB connection") from e
            await asyncio.sleep(delay)
            delay *= 2
            continue

        _client = client
        _database = client[settings.MONGODB_DB_NAME]
        logger.info(f"✅ Connected to MongoDB database '{settings.MONGODB_DB_NAME}'")
        return


async def close_mongo_connection():
    global _client, _database

    if _client is None:
        return
    _client.close()
    _client = None
    _database = None
    logger.info("MongoDB connection closed")


async def check_database_health() -> bool:
    """True when the client exists and the server answers a ping."""
    if _client is None:
        logger.error("MongoDB client not initialized")
        return False

    try:
        await _client.admin.command("ping")
    except Exception as e:
        logger.error(f"Database ping failed: {e}")
        return False
    return True


def get_otp_codes_collection() -> AsyncIOMotorCollection:
    """
    Returns the otp_codes collection.

    Document fields: user_id, code, used, attempts, created_at,
    expires_at, used_at (see app.models.otp_code.OneTimeCode).

    Raises:
        RuntimeError: connect_to_mongo() has not run yet
    """
    if _database is None:
        raise RuntimeError("Database not initialized. Call connect_to_mongo() during startup.")
    return _database[OTP_CODES_COLLECTION]
