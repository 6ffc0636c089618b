from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.portal.models import Base, new_id


class KycRecord(Base):
    __tablename__ = "kyc_records"
    __table_args__ = (
        # One record per user; concurrent submissions are settled here.
        UniqueConstraint("user_id", name="uq_kyc_records_user_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    aadhar_name: Mapped[str] = mapped_column(String(255), nullable=False)  # as printed on the ID
    aadhar_number: Mapped[str] = mapped_column(String(12), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(15), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
