"""
Video API

POST   /api/videos/upload         - Upload a video (admin)
GET    /api/videos                - Browse videos (consumers see approved only)
GET    /api/videos/all-analytics  - Paginated analytics with overall totals (admin)
GET    /api/videos/{id}           - Video with comments, counts a view
POST   /api/videos/{id}/like      - Toggle like (consumer)
GET    /api/videos/{id}/stats     - Single video aggregate (admin)
DELETE /api/videos/{id}           - Delete video, its comments and blobs (admin)

Upload pipeline:
1. Validate title, description and tags
2. Validate the video file (and optional thumbnail file)
3. Upload the video bytes to the blob store
4. Upload the given thumbnail, or derive one from the video; a failed
   derivation leaves the thumbnail empty instead of failing the upload
5. Persist the record
"""

from fastapi import APIRouter, Depends, Query, UploadFile, File, Form, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import asc, desc, func
from typing import List, Optional
import json
import logging
import math
import uuid

from db.connection import db_dependency
from db.verify_token import admin_dependency, consumer_dependency, current_user_dependency
from models.video_models import Video, Comment, VideoStatus
from schemas.return_schemas import UserSummary
from schemas.video_schemas import (
    VideoListItem, VideoResponse, VideosResponse, UploadResponse, LikeResponse, CommentResponse,
    VideoDetailResponse, VideoStats, VideoStatsResponse, AnalyticsVideo, AnalyticsResponse,
    Pagination, OverallStats, SuccessResponse, SortField, SortOrder,
    VideoStatus as VideoStatusFilter
)
from utils.blob_storage import BlobStorage, get_storage
from utils.errors import APIError, BadRequest, Forbidden, NotFound, Internal, StorageError, ThumbnailError
from utils.media_utils import MediaUtils
from utils.permissions import Capability, has_capability

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/videos", tags=["Videos"])


def parse_object_id(value: str, label: str = "video") -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        raise BadRequest(f"Invalid {label} ID", f"Received ID: {value}")


def serialize_video(video: Video, use_placeholder: bool = False, include_likers: bool = True) -> VideoListItem:
    uploader = video.uploader
    thumbnail = video.thumbnail
    if not thumbnail and use_placeholder:
        thumbnail = MediaUtils.PLACEHOLDER_THUMBNAIL_URL

    fields = dict(
        id=video.id,
        title=video.title,
        description=video.description,
        url=video.url,
        thumbnail=thumbnail,
        tags=video.tag_list,
        status=video.status.value,
        views=video.views or 0,
        likes=video.likes or 0,
        uploaded_by=UserSummary(id=uploader.id, name=uploader.name) if uploader else None,
        created_at=video.created_at,
    )
    if include_likers:
        return VideoResponse(liked_by=video.liked_by_ids, **fields)
    return VideoListItem(**fields)


def serialize_comment(comment: Comment, include_email: bool = False) -> CommentResponse:
    user = comment.user
    author = None
    if user:
        author = UserSummary(id=user.id, name=user.name, email=user.email if include_email else None)

    return CommentResponse(
        id=comment.id,
        text=comment.text,
        created_at=comment.created_at,
        user=author,
    )


def comments_for_video(db: Session, video_id: uuid.UUID) -> List[Comment]:
    return db.query(Comment).options(
        joinedload(Comment.user)
    ).filter(Comment.video_id == video_id).order_by(desc(Comment.created_at)).all()


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_video(
    current_user: admin_dependency,
    db: db_dependency,
    storage: Optional[BlobStorage] = Depends(get_storage),
    video: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    tags: Optional[List[str]] = Form(None),
):
    """
    Upload a video with an optional thumbnail (admin only)
    """
    try:
        logger.info(f"🎬 Video upload started user={current_user.id} role={current_user.role.value}")

        # Validate input fields
        title = MediaUtils.validate_text_field(title, "title", MediaUtils.TITLE_LENGTH)
        description = MediaUtils.validate_text_field(description, "description", MediaUtils.DESCRIPTION_LENGTH)
        sanitized_tags = MediaUtils.normalize_tags(tags[0] if tags and len(tags) == 1 else tags)

        # Validate files
        if video is None or not video.filename:
            raise BadRequest("Video file is required")

        video_bytes = await MediaUtils.read_upload(video, MediaUtils.ALLOWED_VIDEO_TYPES, "video")

        thumbnail_bytes = None
        if thumbnail is not None and thumbnail.filename:
            thumbnail_bytes = await MediaUtils.read_upload(thumbnail, MediaUtils.ALLOWED_IMAGE_TYPES, "thumbnail")

        logger.info(
            f"Upload request title={title!r} tags={sanitized_tags} video_size={len(video_bytes)} "
            f"thumbnail_size={len(thumbnail_bytes) if thumbnail_bytes else None}"
        )

        if storage is None:
            raise Internal("Video upload failed", "Blob storage is not configured")

        video_url = await run_in_threadpool(
            storage.upload_bytes, video_bytes, "videos", video.filename, video.content_type
        )

        # Handle thumbnail
        thumbnail_url = None
        if thumbnail_bytes:
            thumbnail_url = await run_in_threadpool(
                storage.upload_bytes, thumbnail_bytes, "thumbnails", thumbnail.filename, thumbnail.content_type
            )
        else:
            try:
                derived = await run_in_threadpool(MediaUtils.derive_thumbnail, video_bytes)
                thumbnail_url = await run_in_threadpool(
                    storage.upload_bytes, derived, "thumbnails",
                    MediaUtils.thumbnail_name(video.filename), MediaUtils.THUMBNAIL_MIME_TYPE
                )
            except (ThumbnailError, StorageError) as e:
                logger.warning(f"⚠️ Thumbnail generation failed, continuing without one: {e}")

        video_status = (
            VideoStatus.approved if has_capability(current_user, Capability.auto_approve)
            else VideoStatus.pending
        )

        new_video = Video(
            title=title,
            description=description,
            url=video_url,
            thumbnail=thumbnail_url,
            uploaded_by=current_user.id,
            status=video_status,
        )
        new_video.tag_list = sanitized_tags
        db.add(new_video)
        db.commit()
        db.refresh(new_video)

        logger.info(f"✅ Video upload completed id={new_video.id} url={video_url} thumbnail={thumbnail_url}")

        return UploadResponse(
            message="Video uploaded successfully",
            video=serialize_video(new_video),
        )

    except APIError:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("❌ Video upload error")
        raise Internal.from_exception("Video upload failed", e)


@router.get("", response_model=VideosResponse)
async def get_videos(
    current_user: current_user_dependency,
    db: db_dependency,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    tag: Optional[str] = Query(None),
    status_filter: Optional[VideoStatusFilter] = Query(None, alias="status"),
):
    """Get videos, newest first. Consumers only ever see approved videos."""
    try:
        query = db.query(Video).options(joinedload(Video.uploader))

        if not has_capability(current_user, Capability.view_unapproved):
            query = query.filter(Video.status == VideoStatus.approved)
        elif status_filter:
            query = query.filter(Video.status == VideoStatus(status_filter.value))

        if tag and tag.strip():
            # Tags are stored as a JSON list of quoted strings
            query = query.filter(Video.tags.contains(json.dumps(tag.strip().lower()), autoescape=True))

        total = query.count()

        videos = query.order_by(desc(Video.created_at)).offset((page - 1) * limit).limit(limit).all()

        return VideosResponse(
            videos=[serialize_video(video, use_placeholder=True, include_likers=False) for video in videos],
            total_pages=math.ceil(total / limit),
            current_page=page,
        )

    except APIError:
        raise
    except Exception as e:
        logger.exception("❌ Get videos error")
        raise Internal.from_exception("Failed to retrieve videos", e)


# Registered before the /{video_id} routes so the literal path wins
@router.get("/all-analytics", response_model=AnalyticsResponse)
async def get_video_analytics(
    current_user: admin_dependency,
    db: db_dependency,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[VideoStatusFilter] = Query(None, alias="status"),
    uploaded_by: Optional[int] = Query(None, alias="uploadedBy"),
    sort_by: SortField = Query(SortField.created_at, alias="sortBy"),
    order: SortOrder = Query(SortOrder.desc),
):
    """Analytics for all videos with live comment counts and totals over the filtered set"""
    try:
        comment_counts = db.query(
            Comment.video_id.label("video_id"),
            func.count(Comment.id).label("comment_count")
        ).group_by(Comment.video_id).subquery()
        comments_column = func.coalesce(comment_counts.c.comment_count, 0)

        filters = []
        if status_filter:
            filters.append(Video.status == VideoStatus(status_filter.value))
        if uploaded_by is not None:
            filters.append(Video.uploaded_by == uploaded_by)

        sort_columns = {
            SortField.created_at: Video.created_at,
            SortField.views: Video.views,
            SortField.likes: Video.likes,
            SortField.comments: comments_column,
            SortField.title: Video.title,
        }
        direction = asc if order == SortOrder.asc else desc

        rows = db.query(Video, comments_column.label("comments")).outerjoin(
            comment_counts, comment_counts.c.video_id == Video.id
        ).filter(*filters).order_by(
            direction(sort_columns[sort_by]), desc(Video.created_at)
        ).offset((page - 1) * limit).limit(limit).all()

        totals = db.query(
            func.count(Video.id),
            func.coalesce(func.sum(Video.views), 0),
            func.coalesce(func.sum(Video.likes), 0),
            func.coalesce(func.sum(comments_column), 0),
        ).select_from(Video).outerjoin(
            comment_counts, comment_counts.c.video_id == Video.id
        ).filter(*filters).one()

        total_videos, total_views, total_likes, total_comments = (int(value or 0) for value in totals)

        videos = [
            AnalyticsVideo(
                id=video.id,
                title=video.title,
                url=video.url,
                thumbnail=video.thumbnail,
                views=video.views or 0,
                likes=video.likes or 0,
                comments=int(comments or 0),
                status=video.status.value,
                uploaded_by=video.uploaded_by,
                created_at=video.created_at,
            )
            for video, comments in rows
        ]

        logger.info(f"Analytics page={page} fetched={len(videos)} total={total_videos}")

        return AnalyticsResponse(
            videos=videos,
            pagination=Pagination(
                current_page=page,
                total_pages=math.ceil(total_videos / limit),
                total_videos=total_videos,
                limit=limit,
            ),
            overall_stats=OverallStats(
                total_videos=total_videos,
                total_views=total_views,
                total_likes=total_likes,
                total_comments=total_comments,
            ),
        )

    except APIError:
        raise
    except Exception as e:
        logger.exception("❌ Video analytics error")
        raise Internal.from_exception("Failed to retrieve video analytics", e)


@router.get("/{video_id}", response_model=VideoDetailResponse)
async def get_video(
    video_id: str,
    current_user: current_user_dependency,
    db: db_dependency,
):
    """Get a video with its comments; approved videos count a view"""
    try:
        parsed_id = parse_object_id(video_id)

        video = db.query(Video).options(
            joinedload(Video.uploader)
        ).filter(Video.id == parsed_id).first()

        if not video:
            raise NotFound("Video not found", f"No video found with ID: {video_id}")

        if video.status != VideoStatus.approved and not has_capability(current_user, Capability.view_unapproved):
            logger.warning(
                f"⚠️ Unauthorized video access attempt user={current_user.id} "
                f"role={current_user.role.value} video={video.id}"
            )
            raise Forbidden("Video not available")

        # Snapshot before the increment
        payload = serialize_video(video)
        comments = [serialize_comment(c, include_email=True) for c in comments_for_video(db, parsed_id)]

        if video.status == VideoStatus.approved:
            db.query(Video).filter(Video.id == parsed_id).update(
                {Video.views: Video.views + 1}, synchronize_session=False
            )
            db.commit()

        return VideoDetailResponse(video=payload, comments=comments)

    except APIError:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("❌ Get video by ID error")
        raise Internal.from_exception("Failed to retrieve video", e)


@router.post("/{video_id}/like", response_model=LikeResponse)
async def like_video(
    video_id: str,
    current_user: consumer_dependency,
    db: db_dependency,
):
    """Like or unlike a video (consumer only)"""
    try:
        parsed_id = parse_object_id(video_id)

        video = db.query(Video).filter(Video.id == parsed_id).first()
        if not video:
            logger.error(f"Video not found id={video_id}")
            raise NotFound("Video not found")

        liked = video.toggle_like(current_user.id)
        db.commit()

        return LikeResponse(message="Video like toggled", likes=video.likes, liked=liked)

    except APIError:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("❌ Like video error")
        raise Internal.from_exception("Failed to like video", e)


@router.get("/{video_id}/stats", response_model=VideoStatsResponse)
async def get_video_stats(
    video_id: str,
    current_user: admin_dependency,
    db: db_dependency,
):
    """Single video aggregate: counters, comment count, uploader and commenters"""
    try:
        parsed_id = parse_object_id(video_id)

        video = db.query(Video).options(
            joinedload(Video.uploader)
        ).filter(Video.id == parsed_id).first()

        if not video:
            raise NotFound("Video not found", f"No video found with ID: {video_id}")

        comments = comments_for_video(db, parsed_id)

        stats = VideoStats(
            id=video.id,
            title=video.title,
            description=video.description,
            url=video.url,
            thumbnail=video.thumbnail,
            views=video.views or 0,
            likes=video.likes or 0,
            comments_count=len(comments),
            uploaded_by=video.uploaded_by,
            uploader_name=video.uploader.name if video.uploader else None,
            created_at=video.created_at,
        )

        return VideoStatsResponse(
            video=stats,
            comments=[serialize_comment(c, include_email=True) for c in comments],
        )

    except APIError:
        raise
    except Exception as e:
        logger.exception("❌ Get video stats error")
        raise Internal.from_exception("Failed to retrieve video statistics", e)


@router.delete("/{video_id}", response_model=SuccessResponse)
async def delete_video(
    video_id: str,
    current_user: admin_dependency,
    db: db_dependency,
    storage: Optional[BlobStorage] = Depends(get_storage),
):
    """Delete a video, its comments, then (best effort) its blobs"""
    try:
        parsed_id = parse_object_id(video_id)

        video = db.query(Video).filter(Video.id == parsed_id).first()
        if not video:
            logger.error(f"Video not found id={video_id}")
            raise NotFound("Video not found")

        blob_urls = [url for url in (video.url, video.thumbnail) if url]

        db.query(Comment).filter(Comment.video_id == parsed_id).delete(synchronize_session=False)
        db.delete(video)
        db.commit()

    except APIError:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("❌ Delete video error")
        raise Internal.from_exception("Failed to delete video", e)

    # The database deletion stands even if blob cleanup fails
    if storage is None:
        logger.warning(f"⚠️ Blob storage not configured, leaving blobs for video {video_id}")
    else:
        for url in blob_urls:
            try:
                await run_in_threadpool(storage.delete_by_url, url)
            except StorageError as e:
                logger.error(f"❌ Error deleting blob for video {video_id}: {e}")

    return SuccessResponse(message="Video and associated comments deleted successfully")
