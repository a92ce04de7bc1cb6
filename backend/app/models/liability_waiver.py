# backend/app/models/liability_waiver.py
"""
Signed liability waivers. Every booking checkout references one.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.sql import func
import ulid

from ..core.constants import WAIVER_VERSION
from ..database import Base


class LiabilityWaiver(Base):
    __tablename__ = "liability_waivers"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(64), ForeignKey("users.id"), nullable=True, index=True)
    signer_name = Column(String(200), nullable=False)
    signer_email = Column(String(320), nullable=False, index=True)
    signer_phone = Column(String(40), nullable=True)
    emergency_contact_name = Column(String(200), nullable=False)
    emergency_contact_phone = Column(String(40), nullable=False)
    waiver_version = Column(String(20), nullable=False, default=WAIVER_VERSION)
    waiver_text = Column(Text, nullable=False)
    user_agent = Column(String(500), nullable=True)
    signed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<LiabilityWaiver {self.id} {self.signer_email} v{self.waiver_version}>"
