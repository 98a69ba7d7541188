"""SQLAlchemy table definitions for language statistics and canonical lesson content."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text, false, func

from config.database import Base


class LanguageStatRecord(Base):
    """Usage counters and frequency flag per language."""

    __tablename__ = "language_stats"

    language_code = Column(String(10), primary_key=True)
    language_name = Column(String(100), nullable=False)
    total_requests = Column(Integer, nullable=False, default=0, server_default="0")
    total_lessons = Column(Integer, nullable=False, default=0, server_default="0")
    last_used = Column(DateTime, server_default=func.now())
    is_frequent = Column(Boolean, nullable=False, default=False, server_default=false())
    is_predefined = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())


# Read-only tables owned by the primary content datastore

class ContentTypeRecord(Base):
    __tablename__ = "content_types"

    type_id = Column(Integer, primary_key=True)
    type_name = Column(String(50), nullable=False, unique=True)
    display_name = Column(String(100), nullable=False)


class TopicRecord(Base):
    __tablename__ = "topics"

    topic_id = Column(Integer, primary_key=True)
    topic_name = Column(String(255), nullable=False)
    description = Column(Text)
    language = Column(String(10), default="en")
    status = Column(String(20), default="active")
    created_at = Column(DateTime, server_default=func.now())


class ContentRecord(Base):
    __tablename__ = "content"

    content_id = Column(Integer, primary_key=True)
    topic_id = Column(Integer, ForeignKey("topics.topic_id"), nullable=False)
    content_type_id = Column(Integer, ForeignKey("content_types.type_id"), nullable=False)
    content_data = Column(JSON)
    created_at = Column(DateTime, server_default=func.now())
