"""
Database initialization script for the otp_codes collection

Run once (or after changing OTP_RETENTION_SECONDS) to create indexes:
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

import logging

from app.core.config import settings
from app.db.mongo import connect_to_mongo, close_mongo_connection, get_otp_codes_collection
from app.db.indexes import create_indexes

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


async def main():
    """Main initialization"""
    logger.info("=" * 60)
    logger.info("  OTP Service Database Setup")
    logger.info("=" * 60 + "\n")

    logger.info(f"🔌 Connecting to MongoDB: {settings.MONGODB_DB_NAME}")
    await connect_to_mongo()

    try:
        await create_indexes()

        otp_codes = get_otp_codes_collection()

        logger.info("\n🔍 Verifying indexes...")
        indexes = await otp_codes.index_information()
        for idx_name in indexes.keys():
            if idx_name != "_id_":
                logger.info(f"    ✅ {idx_name}")

        total = await otp_codes.count_documents({})
        unused = await otp_codes.count_documents({"used": False})
        logger.info("\n📊 Current documents:")
        logger.info(f"  OTP codes: {total} ({unused} unused)")

        logger.info("\n✅ Database initialization complete!")

    except Exception as e:
        logger.error(f"\n❌ Error: {e}")
        raise

    finally:
        await close_mongo_connection()

    logger.info("\n" + "=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
