import os

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import vidtube.models  # noqa: F401
from vidtube.config import settings
from vidtube.db.base import Base
from vidtube.db.repositories import user_repo, video_repo
from vidtube.db.session import get_db
from vidtube.main import app
from vidtube.services.auth_service import create_access_token, hash_password
from vidtube.services.upload_service import VIDEOS, storage_dir

TEST_PASSWORD = "secret123"
_password_hash: str | None = None


def _test_password_hash() -> str:
    # bcrypt is slow on purpose; hash the shared test password once
    global _password_hash
    if _password_hash is None:
        _password_hash = hash_password(TEST_PASSWORD)
    return _password_hash


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setattr(settings, "upload_dir", str(path))
    return path


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'vidtube.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def make_user(session_maker):
    async def _make_user(username: str, **kwargs):
        async with session_maker() as session:
            user = await user_repo.create_user(
                session, username=username, password_hash=_test_password_hash(), **kwargs
            )
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def make_video(session_maker):
    async def _make_video(creator, title: str = "Clip", content: bytes = b"", **kwargs):
        file_name = f"{title.lower().replace(' ', '-')}-{os.urandom(4).hex()}.mp4"
        with open(os.path.join(storage_dir(VIDEOS), file_name), "wb") as f:
            f.write(content)
        is_private = kwargs.pop("is_private", False)
        async with session_maker() as session:
            video = await video_repo.create_video(
                session, creator_id=creator.id, title=title, file_name=file_name, **kwargs
            )
            if is_private:
                video = await video_repo.update_video(session, video, is_private=True)
            await session.commit()
            return video

    return _make_video


def auth_headers(user) -> dict[str, str]:
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}
