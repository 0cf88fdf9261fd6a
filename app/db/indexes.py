"""
app/db/indexes.py

Purpose: Database index management

- Lookup index for active-code queries
- TTL index for physical cleanup of long-expired codes
"""

from pymongo import ASCENDING, DESCENDING

from app.db.mongo import get_otp_codes_collection
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        otp_codes = get_otp_codes_collection()

        logger.info("Creating database indexes...")

        # Active-code lookup: user + used flag, newest first
        await otp_codes.create_index(
            [("user_id", ASCENDING), ("used", ASCENDING), ("created_at", DESCENDING)],
            name="user_active_idx"
        )
        logger.debug("Created compound index on otp_codes.user_id + used + created_at")

        # Expiry is checked logically on read; this only reaps old documents
        await otp_codes.create_index(
            "expires_at",
            expireAfterSeconds=settings.OTP_RETENTION_SECONDS,
            name="otp_expiry_ttl_idx"
        )
        logger.debug("Created TTL index on otp_codes.expires_at")

        logger.info("✅ All database indexes created successfully")

        otp_indexes = await otp_codes.index_information()
        logger.info(f"Index summary: otp_codes={len(otp_indexes)}")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    """
    Run this script directly to create indexes manually.
    """
    import asyncio
    from app.db.mongo import connect_to_mongo, close_mongo_connection

    async def main():
        await connect_to_mongo()
        await create_indexes()
        await close_mongo_connection()

    asyncio.run(main())
