from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship

from ..database import Base
from .columns import new_id, utcnow


class Job(Base):
    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(150), nullable=False)
    company = Column(String(150), nullable=False)
    description = Column(Text, nullable=False)
    location = Column(String(100), nullable=True)
    salary_range = Column(String(50), nullable=True)
    required_skills = Column(JSON, nullable=False, default=list)
    employment_type = Column(String(20), nullable=True)  # full-time | part-time | contract | freelance
    is_remote = Column(Boolean, nullable=False, default=False)
    posted_by = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    # Lifecycle: pending -> paid | failed. Written only through the repository.
    payment_status = Column(String(20), nullable=False, default="pending")
    payment_tx_hash = Column(String(128), nullable=True)
    payment_amount = Column(Numeric(18, 8), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    poster = relationship("User", back_populates="jobs")
    applications = relationship("JobApplication", back_populates="job")
    posts = relationship("Post", back_populates="job")
    payments = relationship("Payment", back_populates="job")
