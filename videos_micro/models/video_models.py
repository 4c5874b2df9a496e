from sqlalchemy import Column, String, Text, DateTime, Integer, ForeignKey, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from typing import List
import uuid
import enum
import json

from db.database import Base


class VideoStatus(enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class Video(Base):
    __tablename__ = "videos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)

    # Blob store URLs
    url = Column(Text, nullable=False)
    thumbnail = Column(Text, nullable=True)

    tags = Column(Text, nullable=False, default="[]")  # JSON list, lowercase and unique
    uploaded_by = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    status = Column(SQLEnum(VideoStatus), nullable=False, default=VideoStatus.pending, index=True)

    # Engagement
    views = Column(Integer, nullable=False, default=0)
    likes = Column(Integer, nullable=False, default=0)
    liked_by = Column(Text, nullable=False, default="[]")  # JSON list of user ids, len == likes

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    uploader = relationship("User", back_populates="videos")
    comments = relationship("Comment", back_populates="video", cascade="all, delete-orphan")

    @property
    def tag_list(self) -> List[str]:
        return json.loads(self.tags) if self.tags else []

    @tag_list.setter
    def tag_list(self, tags: List[str]):
        self.tags = json.dumps(tags)

    @property
    def liked_by_ids(self) -> List[int]:
        return json.loads(self.liked_by) if self.liked_by else []

    def toggle_like(self, user_id: int) -> bool:
        """Add or remove user_id from the like-set. Returns True when the video is now liked."""
        liked_by = self.liked_by_ids
        if user_id in liked_by:
            liked_by.remove(user_id)
            liked = False
        else:
            liked_by.append(user_id)
            liked = True

        self.liked_by = json.dumps(liked_by)
        self.likes = len(liked_by)
        return liked

    def __repr__(self):
        return f"<Video(title={self.title}, status={self.status.value if self.status else None})>"


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    video_id = Column(Uuid, ForeignKey('videos.id', ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    video = relationship("Video", back_populates="comments")
    user = relationship("User", back_populates="comments")
