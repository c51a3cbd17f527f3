from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from ..database import Base
from .columns import new_id, utcnow


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    job_id = Column(String(36), ForeignKey("jobs.id"), nullable=True)
    amount = Column(Numeric(18, 8), nullable=False)
    currency = Column(String(10), nullable=False)  # ETH | MATIC | SOL
    tx_hash = Column(String(128), unique=True, index=True, nullable=False)
    blockchain_network = Column(String(20), nullable=False)  # ethereum | polygon | solana
    status = Column(String(20), nullable=False, default="pending")  # pending | confirmed | verified | failed
    purpose = Column(String(30), nullable=False)  # job_posting | premium_feature
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="payments")
    job = relationship("Job", back_populates="payments")
