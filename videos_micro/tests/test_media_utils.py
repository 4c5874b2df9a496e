import io

import pytest
from PIL import Image

from utils.errors import BadRequest, ThumbnailError
from utils.media_utils import MediaUtils


class TestNormalizeTags:

    def test_trims_lowercases_and_dedupes(self):
        assert MediaUtils.normalize_tags(["Music", "music", " ROCK "]) == ["music", "rock"]

    def test_is_idempotent(self):
        once = MediaUtils.normalize_tags(["Music", "music", " ROCK "])
        assert MediaUtils.normalize_tags(once) == once

    def test_splits_comma_separated_string(self):
        assert MediaUtils.normalize_tags("music,live") == ["music", "live"]
        assert MediaUtils.normalize_tags(" Jazz , ,BLUES,jazz") == ["jazz", "blues"]

    def test_accepts_json_array_string(self):
        assert MediaUtils.normalize_tags('["Pop", "pop", "Indie"]') == ["pop", "indie"]

    @pytest.mark.parametrize("tags", [None, "", " , ,", []])
    def test_requires_at_least_one_tag(self, tags):
        with pytest.raises(BadRequest):
            MediaUtils.normalize_tags(tags)

    def test_rejects_more_than_ten(self):
        with pytest.raises(BadRequest) as exc:
            MediaUtils.normalize_tags(",".join(f"tag{i}" for i in range(11)))
        assert exc.value.error == "Maximum of 10 tags allowed"

    def test_ten_distinct_after_dedupe_is_fine(self):
        tags = [f"tag{i}" for i in range(10)] + ["TAG0", "tag1 "]
        assert len(MediaUtils.normalize_tags(tags)) == 10


class TestValidateTextField:

    def test_strips_and_returns(self):
        assert MediaUtils.validate_text_field("  My Clip ", "title", MediaUtils.TITLE_LENGTH) == "My Clip"

    def test_missing(self):
        with pytest.raises(BadRequest) as exc:
            MediaUtils.validate_text_field(None, "title", MediaUtils.TITLE_LENGTH)
        assert exc.value.error == "Title is required"

    @pytest.mark.parametrize("value", ["ab", "x" * 101])
    def test_out_of_bounds(self, value):
        with pytest.raises(BadRequest) as exc:
            MediaUtils.validate_text_field(value, "title", MediaUtils.TITLE_LENGTH)
        assert exc.value.error == "Title must be between 3 and 100 characters"


class TestThumbnail:

    def test_salient_centering_follows_detail(self):
        img = Image.new("RGB", (400, 200), (0, 0, 0))
        img.paste((255, 255, 255), (300, 120, 360, 180))

        cx, cy = MediaUtils.salient_centering(img)

        assert cx > 0.6
        assert cy > 0.5

    def test_flat_image_centers(self):
        assert MediaUtils.salient_centering(Image.new("RGB", (100, 100), (40, 40, 40))) == (0.5, 0.5)

    def test_crop_to_thumbnail_is_fixed_size_png(self):
        img = Image.new("RGBA", (1280, 720), (10, 200, 10, 255))

        data = MediaUtils.crop_to_thumbnail(img)

        thumb = Image.open(io.BytesIO(data))
        assert thumb.format == "PNG"
        assert thumb.size == (320, 240)

    def test_derive_thumbnail_from_video(self, video_bytes):
        data = MediaUtils.derive_thumbnail(video_bytes)

        thumb = Image.open(io.BytesIO(data))
        assert thumb.format == "PNG"
        assert thumb.size == MediaUtils.THUMBNAIL_SIZE

    @pytest.mark.parametrize("payload", [b"", b"definitely not a video" * 10])
    def test_derive_thumbnail_failure_is_one_error_type(self, payload):
        with pytest.raises(ThumbnailError):
            MediaUtils.derive_thumbnail(payload)

    def test_thumbnail_name(self):
        assert MediaUtils.thumbnail_name("holiday.clip.mp4") == "holiday.clip_thumbnail.png"
        assert MediaUtils.thumbnail_name(None) == "video_thumbnail.png"
