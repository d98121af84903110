"""
Unit tests for media sizing and the Pillow probe.
"""

from PIL import Image
import pytest

from album_core.services.media import (
    DEFAULT_MEDIA_SIZE,
    fit_media_size,
    media_partial,
    media_type_for,
)
from album_infra.media_probe import media_partial_for_file, probe_image


class TestFitMediaSize:
    """Tests for fit_media_size()."""

    def test_fit_media_size_when_landscape_then_width_is_max(self):
        assert fit_media_size(4000, 2000) == (40.0, 20.0)

    def test_fit_media_size_when_portrait_then_height_is_max(self):
        assert fit_media_size(1000, 2000) == (20.0, 40.0)

    def test_fit_media_size_when_square_then_both_max(self):
        assert fit_media_size(500, 500) == (40.0, 40.0)

    @pytest.mark.parametrize("size", [(0, 100), (100, 0), (-1, -1)])
    def test_fit_media_size_when_degenerate_then_default(self, size):
        assert fit_media_size(*size) == DEFAULT_MEDIA_SIZE


class TestMediaPartial:
    """Tests for media_partial()/media_type_for()."""

    def test_media_partial_when_size_known_then_aspect_locked(self):
        partial = media_partial("file:///a.jpg", "image", (300, 200), folder="Trip")

        assert partial["width"] == 40.0
        assert partial["height"] == pytest.approx(26.6667, rel=1e-4)
        assert partial["lock_aspect_ratio"] is True
        assert partial["original_dimensions"] == {"width": 300, "height": 200}
        assert partial["aspect_ratio"] == 1.5
        assert partial["folder"] == "Trip"

    def test_media_partial_when_size_unknown_then_default_size(self):
        partial = media_partial("file:///clip.mp4", "video")

        assert (partial["width"], partial["height"]) == DEFAULT_MEDIA_SIZE
        assert "original_dimensions" not in partial
        assert "folder" not in partial

    def test_media_type_for_when_video_suffix_then_video(self):
        assert media_type_for("clip.MOV") == "video"
        assert media_type_for("photo.heic") == "image"


class TestProbe:
    """Tests for the Pillow-backed probe."""

    def test_probe_image_when_png_then_dimensions(self, sample_image):
        info = probe_image(sample_image)

        assert (info.width, info.height) == (200, 100)
        assert info.captured_at is None

    def test_probe_image_when_not_an_image_then_none(self, tmp_path):
        bogus = tmp_path / "notes.jpg"
        bogus.write_text("hello", encoding="utf-8")

        assert probe_image(bogus) is None

    def test_probe_image_when_exif_date_then_captured_at(self, tmp_path):
        path = tmp_path / "dated.jpg"
        img = Image.new("RGB", (10, 20))
        exif = Image.Exif()
        exif[306] = "2023:07:14 09:30:00"
        img.save(path, exif=exif)

        info = probe_image(path)

        assert info.captured_at.isoformat() == "2023-07-14T09:30:00"
        assert (info.width, info.height) == (10, 20)

    def test_media_partial_for_file_when_image_then_sized_from_pixels(self, sample_image):
        partial = media_partial_for_file(sample_image, folder="Summer")

        assert partial["type"] == "image"
        assert partial["url"] == sample_image.resolve().as_uri()
        assert (partial["width"], partial["height"]) == (40.0, 20.0)
        assert partial["folder"] == "Summer"

    def test_media_partial_for_file_when_video_then_not_probed(self, tmp_path):
        clip = tmp_path / "clip.mp4"
        clip.write_bytes(b"\x00\x00")

        partial = media_partial_for_file(clip)

        assert partial["type"] == "video"
        assert (partial["width"], partial["height"]) == DEFAULT_MEDIA_SIZE
