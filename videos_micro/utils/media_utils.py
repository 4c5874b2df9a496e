"""
Media Utilities

Upload validation and thumbnail derivation for the video pipeline:
- MIME type and size checks for the `video` and `thumbnail` upload fields
- Tag normalization (comma splitting, trimming, lowercasing, de-duplication)
- Thumbnail derivation: first decodable frame, cropped around its most
  salient region and resized to a fixed 320x240 PNG
"""

import io
import json
import logging
import os
import tempfile
from typing import Iterable, List, Optional, Tuple, Union

import cv2
import numpy as np
from fastapi import UploadFile
from PIL import Image, ImageFilter, ImageOps

from utils.errors import BadRequest, ThumbnailError

logger = logging.getLogger(__name__)


class MediaUtils:

    # Allowed MIME types
    ALLOWED_VIDEO_TYPES = {'video/mp4', 'video/mpeg', 'video/quicktime'}
    ALLOWED_IMAGE_TYPES = {'image/jpeg', 'image/png'}

    # Size limit (in bytes)
    MAX_UPLOAD_SIZE = 100 * 1024 * 1024  # 100MB

    # Text limits
    TITLE_LENGTH = (3, 100)
    DESCRIPTION_LENGTH = (10, 500)
    MAX_TAGS = 10

    # Thumbnail output
    THUMBNAIL_SIZE = (320, 240)
    THUMBNAIL_MIME_TYPE = "image/png"
    MAX_FRAME_ATTEMPTS = 30  # frames to try before giving up on a stream

    PLACEHOLDER_THUMBNAIL_URL = "https://via.placeholder.com/300x200?text=No+Thumbnail"

    @staticmethod
    def validate_text_field(value: Optional[str], field: str, bounds: Tuple[int, int]) -> str:
        label = field.capitalize()
        if value is None or not value.strip():
            raise BadRequest(f"{label} is required")

        value = value.strip()
        low, high = bounds
        if not low <= len(value) <= high:
            raise BadRequest(f"{label} must be between {low} and {high} characters")
        return value

    @staticmethod
    def normalize_tags(tags_input: Union[str, Iterable[str], None]) -> List[str]:
        """
        Normalize tags into a lowercase, de-duplicated list (first-seen order).

        Accepts a comma separated string, a JSON array string, or a list of
        strings where each item may itself be comma separated.
        """
        if tags_input is None:
            raise BadRequest("Tags are required")

        if isinstance(tags_input, str):
            raw = tags_input.strip()
            if raw.startswith('[') and raw.endswith(']'):
                try:
                    parsed = json.loads(raw)
                except ValueError:
                    raise BadRequest("Tags must be a comma separated list")
                if not isinstance(parsed, list):
                    raise BadRequest("Tags must be a comma separated list")
                items = [str(item) for item in parsed]
            else:
                items = [raw]
        else:
            items = [str(item) for item in tags_input]

        tags: List[str] = []
        for item in items:
            for tag in item.split(','):
                tag = tag.strip().lower()
                if tag and tag not in tags:
                    tags.append(tag)

        if not tags:
            raise BadRequest("At least one valid tag is required")

        if len(tags) > MediaUtils.MAX_TAGS:
            raise BadRequest(f"Maximum of {MediaUtils.MAX_TAGS} tags allowed")

        return tags

    @staticmethod
    async def read_upload(upload: UploadFile, allowed_types: set, field: str) -> bytes:
        """Check MIME type and size of an uploaded file and return its bytes"""
        content_type = upload.content_type
        if content_type not in allowed_types:
            raise BadRequest(
                "Invalid file type",
                f"{field} must be one of: {', '.join(sorted(allowed_types))}"
            )

        content = await upload.read(MediaUtils.MAX_UPLOAD_SIZE + 1)
        if len(content) > MediaUtils.MAX_UPLOAD_SIZE:
            raise BadRequest(
                "File too large",
                f"Maximum size is {MediaUtils.MAX_UPLOAD_SIZE // (1024 * 1024)}MB"
            )
        if not content:
            raise BadRequest(f"{field.capitalize()} file is empty")

        return content

    @staticmethod
    def thumbnail_name(video_filename: Optional[str]) -> str:
        base = os.path.splitext(os.path.basename(video_filename or "video"))[0] or "video"
        return f"{base}_thumbnail.png"

    @staticmethod
    def extract_first_frame(video_bytes: bytes) -> Image.Image:
        """Decode the video and return its first decodable frame as an RGB image"""
        if not video_bytes:
            raise ThumbnailError("Video is empty")

        temp_file_path = None
        cap = None
        try:
            # OpenCV decodes from a path, not from memory
            with tempfile.NamedTemporaryFile(suffix='.mp4', delete=False) as temp_file:
                temp_file.write(video_bytes)
                temp_file_path = temp_file.name

            cap = cv2.VideoCapture(temp_file_path)
            if not cap.isOpened():
                raise ThumbnailError("Unable to open video stream")

            for _ in range(MediaUtils.MAX_FRAME_ATTEMPTS):
                ret, frame = cap.read()
                if ret and frame is not None:
                    # Convert BGR to RGB
                    frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                    logger.debug(f"Decoded frame {frame.shape[1]}x{frame.shape[0]}")
                    return Image.fromarray(frame_rgb)

            raise ThumbnailError("No decodable frame found in video")
        except ThumbnailError:
            raise
        except Exception as e:
            raise ThumbnailError(f"Frame extraction failed: {e}") from e
        finally:
            if cap is not None:
                cap.release()
            if temp_file_path and os.path.exists(temp_file_path):
                os.unlink(temp_file_path)

    @staticmethod
    def salient_centering(img: Image.Image) -> Tuple[float, float]:
        """
        Relative (x, y) position of the image's most salient region, used as
        crop centering. Saliency is edge energy; a flat image centers.
        """
        gray = img.convert("L")
        edges = np.asarray(gray.filter(ImageFilter.FIND_EDGES), dtype=np.float64)

        # FIND_EDGES lights up the 1px border, which is not content
        if edges.shape[0] > 2 and edges.shape[1] > 2:
            edges = edges[1:-1, 1:-1]

        total = edges.sum()
        if total <= 0:
            return 0.5, 0.5

        height, width = edges.shape
        ys, xs = np.indices(edges.shape)
        cx = float((edges * xs).sum() / total) / max(width - 1, 1)
        cy = float((edges * ys).sum() / total) / max(height - 1, 1)
        return min(max(cx, 0.0), 1.0), min(max(cy, 0.0), 1.0)

    @staticmethod
    def crop_to_thumbnail(img: Image.Image, size: Tuple[int, int] = None) -> bytes:
        """Cover-crop `img` to `size` around its salient region and encode as PNG"""
        size = size or MediaUtils.THUMBNAIL_SIZE
        if img.mode != 'RGB':
            img = img.convert('RGB')

        centering = MediaUtils.salient_centering(img)
        thumb = ImageOps.fit(img, size, method=Image.Resampling.LANCZOS, centering=centering)

        output = io.BytesIO()
        thumb.save(output, format='PNG', optimize=True)
        return output.getvalue()

    @staticmethod
    def derive_thumbnail(video_bytes: bytes) -> bytes:
        """
        Build a 320x240 PNG thumbnail from raw video bytes.

        Frame extraction and resizing are one step with one failure mode:
        anything that goes wrong raises ThumbnailError.
        """
        frame = MediaUtils.extract_first_frame(video_bytes)
        try:
            return MediaUtils.crop_to_thumbnail(frame)
        except Exception as e:
            raise ThumbnailError(f"Thumbnail resize failed: {e}") from e
