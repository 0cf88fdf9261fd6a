import asyncio
import logging

from app.core.config import settings
from app.db.mongo import connect_to_mongo, close_mongo_connection, get_otp_codes_collection

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def check_indexes():
    await connect_to_mongo()
    otp_codes = get_otp_codes_collection()

    try:
        indexes = await otp_codes.index_information()
        logger.info(f"Existing indexes: {list(indexes.keys())}")

        ttl = indexes.get("otp_expiry_ttl_idx")
        if ttl is None:
            logger.info("ℹ️ TTL index not found (created on startup).")
        elif ttl.get("expireAfterSeconds") != settings.OTP_RETENTION_SECONDS:
            logger.error(
                f"❌ TTL index expires after {ttl.get('expireAfterSeconds')}s, "
                f"configured retention is {settings.OTP_RETENTION_SECONDS}s. Drop it and restart."
            )
        else:
            logger.info("✅ 'otp_expiry_ttl_idx' matches configured retention.")

        if "user_active_idx" in indexes:
            logger.info("✅ 'user_active_idx' exists.")
        else:
            logger.info("ℹ️ Active-code lookup index not found (created on startup).")

    except Exception as e:
        logger.error(f"Error checking index: {e}")
    finally:
        await close_mongo_connection()

if __name__ == "__main__":
    asyncio.run(check_indexes())
