from unittest.mock import patch

import ffmpeg
import pytest

from vidtube.errors import MediaProbeFailed
from vidtube.services import media_service


@pytest.mark.asyncio
async def test_probe_duration_rounds_container_duration():
    with patch("vidtube.services.media_service.ffmpeg.probe", return_value={"format": {"duration": "12.6"}}):
        assert await media_service.probe_duration("clip.mp4") == 13


@pytest.mark.asyncio
async def test_probe_duration_falls_back_to_video_stream():
    probe = {
        "format": {},
        "streams": [
            {"codec_type": "audio", "duration": "99.0"},
            {"codec_type": "video", "duration": "4.2"},
        ],
    }
    with patch("vidtube.services.media_service.ffmpeg.probe", return_value=probe):
        assert await media_service.probe_duration("clip.mp4") == 4


@pytest.mark.asyncio
async def test_probe_duration_wraps_ffprobe_errors():
    error = ffmpeg.Error("ffprobe", b"", b"moov atom not found")
    with patch("vidtube.services.media_service.ffmpeg.probe", side_effect=error):
        with pytest.raises(MediaProbeFailed):
            await media_service.probe_duration("broken.mp4")


@pytest.mark.asyncio
async def test_generate_thumbnail_failure_returns_empty_name(upload_dir):
    error = ffmpeg.Error("ffmpeg", b"", b"Invalid data found")
    with patch("vidtube.services.media_service._grab_frame", side_effect=error):
        assert await media_service.generate_thumbnail("broken.mp4") == ""


@pytest.mark.asyncio
async def test_generated_thumbnails_never_share_a_file(upload_dir):
    def fake_grab(video_path, output_path):
        with open(output_path, "wb") as f:
            f.write(b"\xff\xd8")

    # both frames are grabbed within the same millisecond
    with patch("vidtube.services.media_service._grab_frame", side_effect=fake_grab), \
         patch("vidtube.services.upload_service.time.time", return_value=1700000000.0):
        name = await media_service.generate_thumbnail("clip.mp4")
        other = await media_service.generate_thumbnail("other.mp4")

    assert name.endswith(".jpg")
    assert name != other
    assert sorted(p.name for p in (upload_dir / "thumbnails").iterdir()) == sorted([name, other])
