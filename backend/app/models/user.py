from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import Base
from .columns import new_id, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash, never serialized
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    bio = Column(Text, nullable=True)
    title = Column(String(150), nullable=True)
    linkedin_url = Column(String(255), nullable=True)
    wallet_address = Column(String(128), nullable=True)
    wallet_type = Column(String(20), nullable=True)  # metamask | phantom
    skills = Column(JSON, nullable=False, default=list)
    profile_image_url = Column(String(500), nullable=True)
    profile_strength = Column(Integer, nullable=False, default=0)  # derived, 0-100
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    jobs = relationship("Job", back_populates="poster")
    posts = relationship("Post", back_populates="author")
    applications = relationship("JobApplication", back_populates="applicant")
    payments = relationship("Payment", back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
