import pytest
from sqlalchemy import func, select, update

from vidtube.db.repositories import comment_repo
from vidtube.models.comment import Comment
from vidtube.models.like import Like
from vidtube.models.video import Video
from vidtube.services import reaction_service
from tests.conftest import auth_headers


async def _react(client, video, user, status):
    return await client.post(
        f"/api/videos/{video.id}/like", json={"status": status}, headers=auth_headers(user)
    )


@pytest.mark.asyncio
async def test_like_is_idempotent(client, make_user, make_video):
    creator = await make_user("creator")
    viewer = await make_user("viewer")
    video = await make_video(creator)

    first = await _react(client, video, viewer, "like")
    second = await _react(client, video, viewer, "like")

    assert first.status_code == 200
    assert first.json() == {"likes": 1, "dislikes": 0, "status": "like"}
    assert second.json() == {"likes": 1, "dislikes": 0, "status": "like"}


@pytest.mark.asyncio
async def test_flip_like_to_dislike_moves_one_count(client, make_user, make_video):
    creator = await make_user("creator")
    viewer = await make_user("viewer")
    video = await make_video(creator)

    await _react(client, video, viewer, "like")
    resp = await _react(client, video, viewer, "dislike")

    assert resp.json() == {"likes": 0, "dislikes": 1, "status": "dislike"}
    status = await client.get(f"/api/videos/{video.id}/like/status", headers=auth_headers(viewer))
    assert status.json() == {"status": "dislike"}


@pytest.mark.asyncio
async def test_remove_reaction_and_noop_remove(client, make_user, make_video, db_session):
    creator = await make_user("creator")
    viewer = await make_user("viewer")
    video = await make_video(creator)

    await _react(client, video, viewer, "dislike")
    removed = await _react(client, video, viewer, None)
    again = await _react(client, video, viewer, None)

    assert removed.json() == {"likes": 0, "dislikes": 0, "status": None}
    assert again.json() == {"likes": 0, "dislikes": 0, "status": None}
    remaining = await db_session.scalar(select(func.count(Like.id)).where(Like.video_id == video.id))
    assert remaining == 0


@pytest.mark.asyncio
async def test_counters_track_several_users(client, make_user, make_video):
    creator = await make_user("creator")
    users = [await make_user(f"fan{i}") for i in range(3)]
    video = await make_video(creator)

    for user in users:
        await _react(client, video, user, "like")
    await _react(client, video, users[0], "dislike")
    resp = await _react(client, video, users[1], None)

    assert resp.json()["likes"] == 1
    assert resp.json()["dislikes"] == 1


@pytest.mark.asyncio
async def test_react_requires_auth_and_existing_video(client, make_user, make_video):
    creator = await make_user("creator")
    video = await make_video(creator)

    resp = await client.post(f"/api/videos/{video.id}/like", json={"status": "like"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "No authentication token, access denied"}

    resp = await client.post(
        "/api/videos/00000000-0000-0000-0000-000000000000/like",
        json={"status": "like"},
        headers=auth_headers(creator),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_invalid_reaction_status_is_rejected(client, make_user, make_video):
    creator = await make_user("creator")
    video = await make_video(creator)

    resp = await _react(client, video, creator, "love")
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_video_detail_reports_viewer_reaction(client, make_user, make_video):
    creator = await make_user("creator")
    viewer = await make_user("viewer")
    video = await make_video(creator)
    await _react(client, video, viewer, "like")

    mine = await client.get(f"/api/videos/{video.id}", headers=auth_headers(viewer))
    anonymous = await client.get(f"/api/videos/{video.id}")

    assert mine.json()["is_liked"] is True
    assert mine.json()["is_disliked"] is False
    assert anonymous.json()["is_liked"] is None


@pytest.mark.asyncio
async def test_comment_like_and_unlike(client, make_user, make_video):
    creator = await make_user("creator")
    viewer = await make_user("viewer")
    video = await make_video(creator)
    comment = (
        await client.post(
            f"/api/videos/{video.id}/comments", json={"content": "nice"}, headers=auth_headers(creator)
        )
    ).json()

    url = f"/api/comments/{comment['id']}/like"
    assert (await client.post(url, json={"action": "like"}, headers=auth_headers(viewer))).json() == {"likes": 1}
    assert (await client.post(url, json={"action": "like"}, headers=auth_headers(viewer))).json() == {"likes": 1}

    listed = await client.get(f"/api/videos/{video.id}/comments", headers=auth_headers(viewer))
    assert listed.json()[0]["is_liked"] is True

    assert (await client.post(url, json={"action": "unlike"}, headers=auth_headers(viewer))).json() == {"likes": 0}
    assert (await client.post(url, json={"action": "unlike"}, headers=auth_headers(viewer))).json() == {"likes": 0}


@pytest.mark.asyncio
async def test_reconcile_rebuilds_counters_from_ledger(client, make_user, make_video, db_session):
    creator = await make_user("creator")
    viewer = await make_user("viewer")
    video = await make_video(creator)
    await _react(client, video, viewer, "dislike")
    comment = await comment_repo.create_comment(db_session, video.id, viewer.id, "first")
    await db_session.commit()

    # Simulate drift between the cached counters and the ledger
    await db_session.execute(update(Video).where(Video.id == video.id).values(likes=42, dislikes=0))
    await db_session.execute(update(Comment).where(Comment.id == comment.id).values(likes=7))
    await db_session.commit()

    assert await reaction_service.reconcile_video_counters(db_session) == 1
    assert await reaction_service.reconcile_comment_counters(db_session, [comment.id]) == 1
    await db_session.commit()

    row = (await db_session.execute(select(Video.likes, Video.dislikes).where(Video.id == video.id))).one()
    assert tuple(row) == (0, 1)
    assert await db_session.scalar(select(Comment.likes).where(Comment.id == comment.id)) == 0


@pytest.mark.asyncio
async def test_reconcile_with_empty_id_list_touches_nothing(db_session):
    assert await reaction_service.reconcile_video_counters(db_session, []) == 0
    assert await reaction_service.reconcile_subscriber_counts(db_session, []) == 0
