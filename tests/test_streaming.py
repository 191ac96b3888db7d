import pytest

from vidtube.errors import RangeNotSatisfiable
from vidtube.services.streaming import parse_range
from tests.conftest import auth_headers

BLOB = bytes(range(256)) * 4  # 1024 bytes with a recognisable pattern


@pytest.mark.parametrize(
    "header,expected",
    [
        ("bytes=0-99", (0, 99)),
        ("bytes=100-", (100, 999)),
        ("bytes=990-5000", (990, 999)),
        ("bytes=999-999", (999, 999)),
    ],
)
def test_parse_range_valid(header, expected):
    assert parse_range(header, 1000) == expected


@pytest.mark.parametrize(
    "header",
    ["bytes=1000-", "bytes=50-10", "bytes=abc-", "bytes=-500", "bytes=0-1,5-6", "items=0-10", ""],
)
def test_parse_range_not_satisfiable(header):
    with pytest.raises(RangeNotSatisfiable) as exc_info:
        parse_range(header, 1000)
    assert exc_info.value.size == 1000


@pytest.mark.asyncio
async def test_stream_without_range_returns_whole_file(client, make_user, make_video):
    creator = await make_user("streamer")
    video = await make_video(creator, content=BLOB)

    resp = await client.get(f"/api/videos/{video.id}/stream")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "video/mp4"
    assert resp.headers["content-length"] == str(len(BLOB))
    assert resp.headers["accept-ranges"] == "bytes"
    assert resp.content == BLOB


@pytest.mark.asyncio
async def test_stream_range_returns_partial_content(client, make_user, make_video):
    creator = await make_user("streamer")
    video = await make_video(creator, content=BLOB[:1000])

    resp = await client.get(f"/api/videos/{video.id}/stream", headers={"Range": "bytes=0-99"})
    assert resp.status_code == 206
    assert resp.headers["content-range"] == "bytes 0-99/1000"
    assert resp.headers["content-length"] == "100"
    assert resp.content == BLOB[:100]


@pytest.mark.asyncio
async def test_stream_open_ended_range_matches_source_span(client, make_user, make_video):
    creator = await make_user("streamer")
    video = await make_video(creator, content=BLOB)

    resp = await client.get(f"/api/videos/{video.id}/stream", headers={"Range": "bytes=700-"})
    assert resp.status_code == 206
    assert resp.headers["content-range"] == f"bytes 700-{len(BLOB) - 1}/{len(BLOB)}"
    assert resp.content == BLOB[700:]


@pytest.mark.asyncio
async def test_stream_unsatisfiable_range_is_416(client, make_user, make_video):
    creator = await make_user("streamer")
    video = await make_video(creator, content=BLOB[:1000])

    resp = await client.get(f"/api/videos/{video.id}/stream", headers={"Range": "bytes=1000-"})
    assert resp.status_code == 416
    assert resp.headers["content-range"] == "bytes */1000"
    assert "message" in resp.json()


@pytest.mark.asyncio
async def test_stream_missing_blob_is_404(client, make_user, make_video, upload_dir):
    creator = await make_user("streamer")
    video = await make_video(creator, content=BLOB)
    (upload_dir / "videos" / video.file_name).unlink()

    resp = await client.get(f"/api/videos/{video.id}/stream")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Video file not found"}


@pytest.mark.asyncio
async def test_streaming_does_not_count_views(client, make_user, make_video):
    creator = await make_user("streamer")
    video = await make_video(creator, content=BLOB)

    for start in (0, 100, 200):
        await client.get(f"/api/videos/{video.id}/stream", headers={"Range": f"bytes={start}-"})

    resp = await client.get(f"/api/videos/{video.id}", headers=auth_headers(creator))
    assert resp.json()["views"] == 1
