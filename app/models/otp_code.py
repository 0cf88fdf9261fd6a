"""
app/models/otp_code.py

Purpose: One-time code document model

- Recipient identifier and numeric code
- Used flag and failed-attempt counter
- Creation and expiry timestamps (expiry strictly after creation)
- Conversion to and from MongoDB documents
"""

from datetime import datetime
from typing import Optional, Dict, Any

from bson import ObjectId
from pydantic import BaseModel, Field, model_validator

from utils.time_utils import utc_now, ensure_utc, is_otp_expired


class OneTimeCode(BaseModel):
    """
    A stored one-time code. Expiry is logical: a record is active while
    it is unused and `expires_at` lies in the future.
    """
    id: Optional[str] = Field(default=None, description="MongoDB ObjectId as string")
    user_id: str = Field(..., min_length=1, description="Recipient identifier")
    code: str = Field(..., pattern=r"^[0-9]+$", description="Numeric code")
    used: bool = False
    attempts: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime
    used_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_expiry_after_creation(self):
        self.created_at = ensure_utc(self.created_at)
        self.expires_at = ensure_utc(self.expires_at)
        if self.used_at is not None:
            self.used_at = ensure_utc(self.used_at)
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be strictly after created_at")
        return self

    def is_active(self, now: Optional[datetime] = None) -> bool:
        return not self.used and not is_otp_expired(self.expires_at, now)

    def to_document(self) -> Dict[str, Any]:
        document = self.model_dump(exclude={"id"})
        if self.id:
            document["_id"] = ObjectId(self.id)
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "OneTimeCode":
        data = dict(document)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls(**data)
