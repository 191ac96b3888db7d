from vidtube.db.session import get_db, init_db, async_session_maker
from vidtube.db.base import Base

__all__ = ["get_db", "init_db", "async_session_maker", "Base"]
