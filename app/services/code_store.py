"""
app/services/code_store.py

Purpose: Data-access layer for one-time codes

- Persists new codes
- Supersedes earlier active codes of a user
- Looks up active codes (unused, unexpired)
- Marks codes used with a conditional update (first writer wins)
- Counts failed verification attempts
"""

from datetime import datetime
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import DESCENDING, ReturnDocument

from app.models.otp_code import OneTimeCode
from app.core.logging import get_logger, LogContext
from utils.time_utils import utc_now

logger = get_logger(__name__)


def _object_id(code_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(code_id)
    except (InvalidId, TypeError):
        return None


class CodeStore:
    """Owns the lifecycle of OneTimeCode records in MongoDB."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def create(
        self,
        user_id: str,
        code: str,
        expires_at: datetime,
        supersede: bool = True
    ) -> OneTimeCode:
        """
        Persists a new unused code.

        When `supersede` is set, earlier active codes of the same user are
        marked used, so verification only ever matches the newest one.

        Raises:
            pydantic.ValidationError: If expires_at is not after created_at
        """
        record = OneTimeCode(user_id=user_id, code=code, expires_at=expires_at)

        with LogContext(user_id=user_id):
            inserted = await self.collection.insert_one(record.to_document())
            record.id = str(inserted.inserted_id)
            logger.info("Stored new code", extra={"otp_id": record.id})

        if supersede:
            await self.supersede(user_id, keep_id=record.id)

        return record

    async def supersede(self, user_id: str, keep_id: str) -> int:
        """
        Marks every active code of the user except `keep_id` as used.

        Returns:
            Number of codes superseded
        """
        now = utc_now()
        query = {"user_id": user_id, "used": False, "expires_at": {"$gt": now}}
        oid = _object_id(keep_id)
        if oid is not None:
            query["_id"] = {"$ne": oid}

        result = await self.collection.update_many(
            query,
            {"$set": {"used": True, "used_at": now}}
        )
        if result.modified_count:
            with LogContext(user_id=user_id):
                logger.info(f"Superseded {result.modified_count} active code(s)")
        return result.modified_count

    async def find_active(
        self,
        user_id: str,
        code: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Optional[OneTimeCode]:
        """
        Returns the newest unused, unexpired code of the user, or None.
        `code` narrows the lookup to that exact code when given.
        """
        query = {
            "user_id": user_id,
            "used": False,
            "expires_at": {"$gt": now or utc_now()},
        }
        if code is not None:
            query["code"] = code

        document = await self.collection.find_one(query, sort=[("created_at", DESCENDING)])
        if not document:
            return None
        return OneTimeCode.from_document(document)

    async def mark_used(self, code_id: str) -> bool:
        """
        Marks a code used. Idempotent: marking an already-used code again
        changes nothing and raises nothing.

        Returns:
            True if this call flipped `used` from False to True
        """
        oid = _object_id(code_id)
        if oid is None:
            logger.warning(f"mark_used called with invalid id: {code_id}")
            return False

        result = await self.collection.update_one(
            {"_id": oid, "used": False},
            {"$set": {"used": True, "used_at": utc_now()}}
        )
        changed = result.modified_count == 1
        if not changed:
            logger.debug("Code already used, nothing to do", extra={"otp_id": code_id})
        return changed

    async def register_failed_attempt(self, code_id: str) -> int:
        """
        Atomically increments the failed-attempt counter.

        Returns:
            The counter after the increment (0 if the record is gone)
        """
        oid = _object_id(code_id)
        if oid is None:
            return 0

        document = await self.collection.find_one_and_update(
            {"_id": oid},
            {"$inc": {"attempts": 1}},
            return_document=ReturnDocument.AFTER
        )
        if not document:
            return 0
        return document.get("attempts", 0)
