import datetime

import httpx
import jwt
import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from server.web.app.config import Settings
from server.web.app.db import create_engine, create_session_factory
from server.web.app.main import create_app
from server.web.app.models import Base, User, Video
from tests.mocks import MockVideoS3Service

JWT_KEY = "test-jwt-secret"
# base64 of "test-webhook-signing-key"
WEBHOOK_SECRET = "whsec_dGVzdC13ZWJob29rLXNpZ25pbmcta2V5"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite+aiosqlite://",
        S3_BUCKET_NAME="test-bucket",
        S3_REGION="us-east-1",
        AUTH_JWT_KEY=JWT_KEY,
        WEBHOOK_SECRET=WEBHOOK_SECRET,
        LOG_FORMAT="text",
        UPLOAD_REAPER_INTERVAL_MINUTES=0,
    )


@pytest.fixture
async def session_factory():
    """
    In-memory database shared by every session of one test.
    The schema is created from scratch for each test.
    """
    engine = create_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield create_session_factory(engine)

    await engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage() -> MockVideoS3Service:
    return MockVideoS3Service()


@pytest.fixture
def app(settings, storage, session_factory):
    return create_app(settings=settings, storage=storage, session_factory=session_factory)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


def make_token(user_id: str, key: str = JWT_KEY, expires_in: int = 3600, **claims) -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {"sub": user_id, "iat": now, "exp": now + datetime.timedelta(seconds=expires_in)}
    payload.update(claims)
    return jwt.encode(payload, key, algorithm="HS256")


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


async def create_user(db: AsyncSession, user_id: str = "user_alice", **fields) -> User:
    defaults = {
        "email": f"{user_id}@example.com",
        "username": user_id,
        "display_name": user_id.replace("user_", "").title(),
    }
    defaults.update(fields)
    user = User(id=user_id, **defaults)
    db.add(user)
    await db.commit()
    return user


async def create_video(db: AsyncSession, user: User, video_id: str = "vid123", **fields) -> Video:
    defaults = {
        "title": "Test Video",
        "description": "A test video",
        "video_url": f"https://test-bucket.s3.us-east-1.amazonaws.com/videos/raw/{video_id}.mp4",
        "video_s3_key": f"videos/raw/{video_id}.mp4",
    }
    defaults.update(fields)
    video = Video(id=video_id, user_id=user.id, **defaults)
    db.add(video)
    await db.commit()
    return video


@pytest.fixture
async def alice(db_session) -> User:
    return await create_user(db_session, "user_alice", display_name="Alice Smith")


@pytest.fixture
async def bob(db_session) -> User:
    return await create_user(db_session, "user_bob", display_name="Bob")


@pytest.fixture
async def video(db_session, alice) -> Video:
    return await create_video(db_session, alice)
