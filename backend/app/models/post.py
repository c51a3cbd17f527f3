from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import Base
from .columns import new_id, utcnow


class Post(Base):
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, default=new_id)
    content = Column(Text, nullable=False)
    author_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False, default="text")  # text | job | image
    media_urls = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    job_id = Column(String(36), ForeignKey("jobs.id"), nullable=True)
    # Counters only move through repository.update_post_stats (atomic, non-decreasing).
    likes = Column(Integer, nullable=False, default=0)
    comments = Column(Integer, nullable=False, default=0)
    shares = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    author = relationship("User", back_populates="posts")
    job = relationship("Job", back_populates="posts")
