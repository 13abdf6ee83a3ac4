from sqlalchemy import Column, String, Boolean, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from alumni_portal.core.database import Base
from alumni_portal.core.types import GUID, generate_uuid


class News(Base):
    """News article"""
    __tablename__ = "news"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(500), nullable=False)
    content = Column(Text, nullable=False)
    excerpt = Column(Text, nullable=True)
    featured_image_url = Column(String(500), nullable=True)
    category = Column(String(50), default="general", nullable=False, index=True)
    tags = Column(JSON, default=list)

    # Publishing
    is_published = Column(Boolean, default=False, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    published_at = Column(DateTime, nullable=True)

    author_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = relationship("User", back_populates="news_articles")

    def __repr__(self):
        return f"<News {self.title}>"
