from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from db.database import Base


class Role(enum.Enum):
    consumer = "consumer"
    admin = "admin"


class User(Base):
    __tablename__ = "users"

    # Primary identifiers
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)

    # Authentication
    password_hash = Column(String(255), nullable=False)

    # Profile
    name = Column(String(100), nullable=False)
    role = Column(SQLEnum(Role), nullable=False, default=Role.consumer)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    videos = relationship("Video", back_populates="uploader", lazy="dynamic")
    comments = relationship("Comment", back_populates="user", lazy="dynamic")

    def __repr__(self):
        return f"<User(email={self.email}, role={self.role.value if self.role else None})>"
