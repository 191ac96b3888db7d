from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.main import app
from tests.conftest import auth_headers


@pytest.mark.asyncio
async def test_list_videos_paginates_newest_first(client, make_user, make_video):
    creator = await make_user("creator")
    for title in ("One", "Two", "Three"):
        await make_video(creator, title=title)
    await make_video(creator, title="Secret", is_private=True)

    first = await client.get("/api/videos", params={"page": 1, "limit": 2})
    second = await client.get("/api/videos", params={"page": 2, "limit": 2})

    assert [v["title"] for v in first.json()] == ["Three", "Two"]
    assert [v["title"] for v in second.json()] == ["One"]


@pytest.mark.asyncio
async def test_list_videos_by_category(client, make_user, make_video):
    creator = await make_user("creator")
    await make_video(creator, title="Song", category="Music")
    await make_video(creator, title="Match", category="Sports")

    music = await client.get("/api/videos", params={"category": "Music"})
    everything = await client.get("/api/videos", params={"category": "All"})

    assert [v["title"] for v in music.json()] == ["Song"]
    assert len(everything.json()) == 2


@pytest.mark.asyncio
async def test_get_video_counts_each_view(client, make_user, make_video):
    creator = await make_user("creator")
    video = await make_video(creator, title="Popular")

    first = await client.get(f"/api/videos/{video.id}")
    second = await client.get(f"/api/videos/{video.id}", headers={"Authorization": "Bearer not-a-token"})

    assert first.status_code == 200
    assert first.json()["views"] == 1
    assert second.json()["views"] == 2
    assert second.json()["creator"]["id"] == str(creator.id)


@pytest.mark.asyncio
async def test_get_unknown_video_is_404(client):
    resp = await client.get("/api/videos/00000000-0000-0000-0000-000000000000")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Video not found"}


@pytest.mark.asyncio
async def test_only_owner_can_update_or_delete(client, make_user, make_video, upload_dir):
    owner = await make_user("owner")
    intruder = await make_user("intruder")
    video = await make_video(owner, title="Mine", content=b"data")

    resp = await client.put(f"/api/videos/{video.id}", json={"title": "Stolen"}, headers=auth_headers(intruder))
    assert resp.status_code == 403
    resp = await client.delete(f"/api/videos/{video.id}", headers=auth_headers(intruder))
    assert resp.status_code == 403

    resp = await client.put(
        f"/api/videos/{video.id}",
        json={"title": "Renamed", "category": "Comedy", "is_private": True},
        headers=auth_headers(owner),
    )
    assert resp.status_code == 200
    assert resp.json()["title"] == "Renamed"
    assert resp.json()["category"] == "Comedy"
    assert resp.json()["is_private"] is True

    resp = await client.delete(f"/api/videos/{video.id}", headers=auth_headers(owner))
    assert resp.json() == {"message": "Video deleted successfully"}
    assert not (upload_dir / "videos" / video.file_name).exists()
    assert (await client.get(f"/api/videos/{video.id}")).status_code == 404


@pytest.mark.asyncio
async def test_deleting_video_removes_its_comments_and_history(client, make_user, make_video):
    owner = await make_user("owner")
    viewer = await make_user("viewer")
    video = await make_video(owner)
    await client.post(f"/api/videos/{video.id}/comments", json={"content": "hi"}, headers=auth_headers(viewer))
    await client.post("/api/history", json={"video_id": str(video.id)}, headers=auth_headers(viewer))
    await client.post(f"/api/videos/{video.id}/like", json={"status": "like"}, headers=auth_headers(viewer))

    resp = await client.delete(f"/api/videos/{video.id}", headers=auth_headers(owner))
    assert resp.status_code == 200
    assert (await client.get("/api/history", headers=auth_headers(viewer))).json() == []
    assert (await client.get(f"/api/videos/{video.id}/comments")).json() == []


@pytest.mark.asyncio
async def test_user_videos_hide_private_ones(client, make_user, make_video):
    creator = await make_user("creator")
    await make_video(creator, title="Public")
    await make_video(creator, title="Private", is_private=True)

    resp = await client.get(f"/api/videos/user/{creator.id}")
    assert [v["title"] for v in resp.json()] == ["Public"]


@pytest.mark.asyncio
async def test_related_videos_share_category_or_creator(client, make_user, make_video):
    creator = await make_user("creator")
    other = await make_user("other")
    source = await make_video(creator, title="Source", category="Music")
    await make_video(other, title="Same category", category="Music")
    await make_video(creator, title="Same creator", category="News")
    await make_video(other, title="Unrelated", category="Sports")

    resp = await client.get(f"/api/videos/related/{source.id}")
    assert sorted(v["title"] for v in resp.json()) == ["Same category", "Same creator"]


@pytest.mark.asyncio
async def test_comments_create_edit_delete(client, make_user, make_video):
    creator = await make_user("creator")
    viewer = await make_user("viewer")
    video = await make_video(creator)

    resp = await client.post(f"/api/videos/{video.id}/comments", json={"content": "  "}, headers=auth_headers(viewer))
    assert resp.status_code == 400
    assert resp.json() == {"message": "Comment content is required"}

    comment = (
        await client.post(f"/api/videos/{video.id}/comments", json={"content": "first!"}, headers=auth_headers(viewer))
    ).json()
    assert comment["user"]["username"] == "viewer"
    assert comment["edited"] is False

    resp = await client.put(f"/api/comments/{comment['id']}", json={"content": "edit"}, headers=auth_headers(creator))
    assert resp.status_code == 403

    resp = await client.put(f"/api/comments/{comment['id']}", json={"content": "edited"}, headers=auth_headers(viewer))
    assert resp.json()["content"] == "edited"
    assert resp.json()["edited"] is True

    resp = await client.delete(f"/api/comments/{comment['id']}", headers=auth_headers(viewer))
    assert resp.json() == {"message": "Comment deleted successfully"}
    assert (await client.get(f"/api/videos/{video.id}/comments")).json() == []


@pytest.mark.asyncio
async def test_search_matches_title_and_description(client, make_user, make_video):
    creator = await make_user("creator")
    await make_video(creator, title="Funny Cats", description="")
    await make_video(creator, title="Dogs", description="featuring a CAT cameo")
    await make_video(creator, title="Cat secrets", is_private=True)
    await make_video(creator, title="Birds")

    resp = await client.get("/api/search", params={"q": "cat"})
    assert sorted(v["title"] for v in resp.json()) == ["Dogs", "Funny Cats"]

    assert (await client.get("/api/search", params={"q": "  "})).json() == []


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(client, make_user, make_video):
    creator = await make_user("creator")
    await make_video(creator, title="100% real")
    await make_video(creator, title="1000 clips")

    resp = await client.get("/api/search", params={"q": "100%"})
    assert [v["title"] for v in resp.json()] == ["100% real"]


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_failed_delete_keeps_video_blob(client, make_user, make_video, upload_dir):
    owner = await make_user("owner")
    video = await make_video(owner, title="Keep", content=b"data")
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    commit_failure = OperationalError("COMMIT", {}, Exception("database is locked"))

    async with AsyncClient(transport=transport, base_url="http://test") as failing_client:
        with patch.object(AsyncSession, "commit", new=AsyncMock(side_effect=commit_failure)):
            resp = await failing_client.delete(f"/api/videos/{video.id}", headers=auth_headers(owner))

    assert resp.status_code == 500
    assert (upload_dir / "videos" / video.file_name).exists()
    assert (await client.get(f"/api/videos/{video.id}")).status_code == 200
