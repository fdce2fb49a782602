import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Text, Float, JSON, ForeignKey
from app.db.database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VideoStatus(str, enum.Enum):
    """Lifecycle states of a hosted video.

    UPLOADING only exists on the client while bytes are in flight; the
    backend never writes it.
    """
    AWAITING_UPLOAD = "awaiting_upload"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


TERMINAL_STATUSES = {VideoStatus.READY.value, VideoStatus.ERROR.value}

DEFAULT_AUTHOR = {"name": "Anonymous", "id": "anonymous", "avatar": None}
DEFAULT_SETTINGS = {"allowComments": True, "allowRatings": True, "autoplay": True}


class Video(Base):
    __tablename__ = 'videos'
    id = Column(String(32), primary_key=True, default=_new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default='')
    category = Column(String, nullable=False, default='Uncategorized')
    tags = Column(JSON, nullable=False, default=list)
    visibility = Column(String, nullable=False, default='public')  # public|private|unlisted
    author = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_AUTHOR))
    settings = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_SETTINGS))
    status = Column(String, nullable=False, default=VideoStatus.AWAITING_UPLOAD.value)
    provider_upload_id = Column(String, nullable=True, index=True)
    provider_asset_id = Column(String, nullable=True, index=True)
    playback_id = Column(String, nullable=True)
    duration = Column(Float, nullable=True)
    views = Column(Integer, nullable=False, default=0)
    likes = Column(Integer, nullable=False, default=0)
    shares = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class Comment(Base):
    __tablename__ = 'comments'
    id = Column(String(32), primary_key=True, default=_new_id)
    video_id = Column(String(32), ForeignKey('videos.id', ondelete='CASCADE'), nullable=False, index=True)
    author = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_AUTHOR))
    content = Column(Text, nullable=False)
    likes = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


def merge_settings(current, overrides) -> dict:
    """Defaults, then stored values, then whatever the client actually sent."""
    merged = dict(DEFAULT_SETTINGS)
    merged.update(current or {})
    if overrides is not None:
        merged.update(overrides.model_dump(exclude_none=True))
    return merged
