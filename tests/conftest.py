# tests/conftest.py
from __future__ import annotations

from typing import Callable, Mapping, Optional

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import Session, SQLModel, select

from app.core.auth import IdentityProvider
from app.core.database import get_db
from app.features.storage import FileRecord, MemoryObjectStore, StorageClient, UploadRoute
from app.features.storage.object_store import ObjectStore


# --------------------------------------------------------------------
# anyio plugin runs the async tests on asyncio only
# --------------------------------------------------------------------
@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


# --------------------------------------------------------------------
# Per-test sqlite database with the files table created
# --------------------------------------------------------------------
@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "files.db"
    engine = create_engine(f"sqlite:///{path}")
    SQLModel.metadata.create_all(engine)
    engine.dispose()
    return path


@pytest.fixture
def session_factory(db_path) -> async_sessionmaker[AsyncSession]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def fetch_records(db_path) -> Callable[[], list[FileRecord]]:
    """Read back the files table synchronously."""
    def _fetch() -> list[FileRecord]:
        engine = create_engine(f"sqlite:///{db_path}")
        try:
            with Session(engine) as session:
                return list(session.exec(select(FileRecord)).all())
        finally:
            engine.dispose()
    return _fetch


@pytest.fixture
def object_store() -> MemoryObjectStore:
    return MemoryObjectStore(base_url="https://files.test")


# --------------------------------------------------------------------
# Build an app with a given route table, returns a TestClient
# --------------------------------------------------------------------
@pytest.fixture
def make_client(session_factory, object_store):
    def _make(
        routes: Mapping[str, UploadRoute],
        *,
        store: Optional[ObjectStore] = None,
        identity_provider: Optional[IdentityProvider] = None,
        site_url: Optional[str] = None,
        path_prefix: str = "/storage",
    ) -> TestClient:
        app = FastAPI()
        storage = StorageClient(
            routes,
            object_store=store or object_store,
            identity_provider=identity_provider,
            path_prefix=path_prefix,
            site_url=site_url,
        )
        storage.register_routes(app)

        async def override_get_db():
            async with session_factory() as session:
                yield session

        app.dependency_overrides[get_db] = override_get_db
        return TestClient(app)

    return _make


@pytest.fixture
def png():
    """Multipart entry for a png file under the files field."""
    def _png(name: str = "photo.png", size: int = 1000, content_type: str = "image/png"):
        return ("files", (name, b"\x89" * size, content_type))
    return _png
