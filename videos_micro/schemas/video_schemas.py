from pydantic import Field, UUID4
from typing import List, Optional
from datetime import datetime
from enum import Enum

from schemas.return_schemas import CamelModel, UserSummary


# Enums
class VideoStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class SortField(str, Enum):
    created_at = "createdAt"
    views = "views"
    likes = "likes"
    comments = "comments"
    title = "title"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


# Video Schemas
class VideoListItem(CamelModel):
    id: UUID4
    title: str
    description: str
    url: str
    thumbnail: Optional[str] = None
    tags: List[str] = []
    status: VideoStatus
    views: int = 0
    likes: int = 0
    uploaded_by: Optional[UserSummary] = None
    created_at: Optional[datetime] = None


class VideoResponse(VideoListItem):
    liked_by: List[int] = []


class VideosResponse(CamelModel):
    videos: List[VideoListItem]
    total_pages: int
    current_page: int


class UploadResponse(CamelModel):
    message: str
    video: VideoResponse


class LikeResponse(CamelModel):
    message: str
    likes: int
    liked: bool


# Comment Schemas
class CommentCreate(CamelModel):
    video_id: Optional[str] = None
    text: Optional[str] = Field(None, max_length=1000)


class CommentResponse(CamelModel):
    id: UUID4
    text: str
    created_at: Optional[datetime] = None
    user: Optional[UserSummary] = None


class CommentCreatedResponse(CamelModel):
    message: str
    comment: CommentResponse


class CommentsResponse(CamelModel):
    comments: List[CommentResponse]
    total_pages: int
    current_page: int


class VideoDetailResponse(CamelModel):
    video: VideoResponse
    comments: List[CommentResponse]


# Analytics Schemas
class VideoStats(CamelModel):
    id: UUID4
    title: str
    description: str
    url: str
    thumbnail: Optional[str] = None
    views: int = 0
    likes: int = 0
    comments_count: int = 0
    uploaded_by: int
    uploader_name: Optional[str] = None
    created_at: Optional[datetime] = None


class VideoStatsResponse(CamelModel):
    video: VideoStats
    comments: List[CommentResponse]


class AnalyticsVideo(CamelModel):
    id: UUID4
    title: str
    url: str
    thumbnail: Optional[str] = None
    views: int = 0
    likes: int = 0
    comments: int = 0
    status: VideoStatus
    uploaded_by: int
    created_at: Optional[datetime] = None


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_videos: int
    limit: int


class OverallStats(CamelModel):
    total_videos: int = 0
    total_views: int = 0
    total_likes: int = 0
    total_comments: int = 0


class AnalyticsResponse(CamelModel):
    videos: List[AnalyticsVideo]
    pagination: Pagination
    overall_stats: OverallStats


class SuccessResponse(CamelModel):
    message: str
