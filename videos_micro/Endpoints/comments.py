from fastapi import APIRouter, Query, status
from sqlalchemy.orm import joinedload
from sqlalchemy import desc
import logging
import math

from db.connection import db_dependency
from db.verify_token import current_user_dependency
from models.video_models import Video, Comment
from schemas.video_schemas import (
    CommentCreate, CommentResponse, CommentCreatedResponse, CommentsResponse, SuccessResponse
)
from utils.errors import APIError, BadRequest, Forbidden, NotFound, Internal
from utils.permissions import Capability, has_capability
from Endpoints.videos import parse_object_id, serialize_comment

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/comments", tags=["Comments"])


@router.post("", response_model=CommentCreatedResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    comment_data: CommentCreate,
    current_user: current_user_dependency,
    db: db_dependency,
):
    """Add a comment to a video"""
    if not comment_data.video_id:
        raise BadRequest("Missing required fields", "videoId is required")
    if not comment_data.text or not comment_data.text.strip():
        raise BadRequest("Missing required fields", "Comment text is required")

    try:
        video_id = parse_object_id(comment_data.video_id)

        video = db.query(Video).filter(Video.id == video_id).first()
        if not video:
            raise NotFound("Video not found")

        new_comment = Comment(
            video_id=video_id,
            user_id=current_user.id,
            text=comment_data.text.strip(),
        )
        db.add(new_comment)
        db.commit()
        db.refresh(new_comment)

        return CommentCreatedResponse(
            message="Comment added successfully",
            comment=CommentResponse(
                id=new_comment.id,
                text=new_comment.text,
                created_at=new_comment.created_at,
            ),
        )

    except APIError:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("❌ Add comment error")
        raise Internal.from_exception("Failed to add comment", e)


@router.get("/{video_id}", response_model=CommentsResponse)
async def get_comments(
    video_id: str,
    db: db_dependency,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    """Get comments for a video, newest first"""
    try:
        parsed_id = parse_object_id(video_id)

        video = db.query(Video).filter(Video.id == parsed_id).first()
        if not video:
            raise NotFound("Video not found")

        query = db.query(Comment).filter(Comment.video_id == parsed_id)
        total = query.count()

        comments = query.options(
            joinedload(Comment.user)
        ).order_by(desc(Comment.created_at)).offset((page - 1) * limit).limit(limit).all()

        return CommentsResponse(
            comments=[serialize_comment(comment) for comment in comments],
            total_pages=math.ceil(total / limit),
            current_page=page,
        )

    except APIError:
        raise
    except Exception as e:
        logger.exception("❌ Get comments error")
        raise Internal.from_exception("Failed to retrieve comments", e)


@router.delete("/{comment_id}", response_model=SuccessResponse)
async def delete_comment(
    comment_id: str,
    current_user: current_user_dependency,
    db: db_dependency,
):
    """Delete a comment (its author or an admin)"""
    try:
        parsed_id = parse_object_id(comment_id, label="comment")

        comment = db.query(Comment).filter(Comment.id == parsed_id).first()
        if not comment:
            raise NotFound("Comment not found")

        if comment.user_id != current_user.id and not has_capability(current_user, Capability.moderate_comments):
            logger.warning(f"⚠️ Unauthorized comment deletion attempt user={current_user.id} comment={comment.id}")
            raise Forbidden("Not authorized to delete this comment")

        db.delete(comment)
        db.commit()

        return SuccessResponse(message="Comment deleted successfully")

    except APIError:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("❌ Delete comment error")
        raise Internal.from_exception("Failed to delete comment", e)
