"""Test configuration."""
import os
import tempfile
from collections.abc import AsyncIterator, Callable, Iterator
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

import pytest
from alembic import command
from alembic.config import Config
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

# --- Default env, set before the app is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./taskshare_test.db")
os.environ.setdefault("TASKSHARE_ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-enough-length-for-hs256")
os.environ.setdefault("STRIPE_ENABLED", "false")
os.environ.setdefault("MEDIA_ROOT", str(Path(tempfile.gettempdir()) / "taskshare-test-media"))

from taskshare.main import app  # noqa: E402
from taskshare.db import get_db  # noqa: E402
from taskshare.models import (  # noqa: E402
    Base,
    Category,
    City,
    TaskerProfile,
    TaskRequest,
    TaskRequestAvailability,
    TaskRequestStatus,
    User,
)
from taskshare.services import notifications  # noqa: E402
from taskshare.services.auth import issue_token  # noqa: E402
from taskshare.utils.time import today  # noqa: E402

DB_PATH = Path("./taskshare_test.db")


def _run_migrations() -> None:
    cfg = Config(str(Path(__file__).resolve().parents[1] / "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", os.environ["DATABASE_URL"])
    cfg.attributes["configure_logger"] = False
    command.upgrade(cfg, "head")


# --- (1) Fresh database file per session
if DB_PATH.exists():
    DB_PATH.unlink()

engine = create_engine(os.environ["DATABASE_URL"], connect_args={"check_same_thread": False})


@event.listens_for(engine, "connect")
def _sqlite_fk(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

# --- (2) Schema comes from Alembic only
_run_migrations()


@pytest.fixture
def db_session() -> Iterator[Session]:
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def override_db_dependency() -> Iterator[None]:
    def _get_db() -> Iterator[Session]:
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture(autouse=True)
def clean_tables() -> Iterator[None]:
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


class RecordingPushSender:
    """Collects pushes instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, notifications.PushMessage]] = []
        self.invalid_tokens: set[str] = set()

    def send(self, token: str, message: notifications.PushMessage) -> None:
        if token in self.invalid_tokens:
            raise notifications.InvalidDeviceToken(token)
        self.sent.append((token, message))


@pytest.fixture(autouse=True)
def push_sender(monkeypatch) -> RecordingPushSender:
    sender = RecordingPushSender()
    monkeypatch.setattr(notifications, "get_push_sender", lambda: sender)
    return sender


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {user.current_token}"}

    return _headers


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory creating a logged-in user, optionally with a tasker profile."""

    def _factory(
        name: str = "Alex",
        *,
        wallet: int = 0,
        tasker: bool = False,
        hourly_rate: str = "10.00",
        admin: bool = False,
        iban: str | None = None,
    ) -> User:
        user = User(
            name=name,
            surname="Tester",
            email=f"{name.lower()}-{uuid4().hex[:8]}@example.com",
            wallet_amount=wallet,
            is_admin=admin,
            wallet_bank_iban=iban,
        )
        user.set_password("secret123")
        db_session.add(user)
        db_session.flush()
        if tasker:
            db_session.add(TaskerProfile(user_id=user.id, hourly_rate=Decimal(hourly_rate), description="Handy"))
        user.current_token = issue_token(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _factory


@pytest.fixture
def city(db_session: Session) -> City:
    item = City(name=f"City-{uuid4().hex[:6]}")
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture
def category(db_session: Session) -> Category:
    item = Category(name=f"Category-{uuid4().hex[:6]}", description="Test category")
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture
def make_task_request(db_session: Session, city: City, category: Category) -> Callable[..., TaskRequest]:
    def _factory(
        sender: User,
        tasker: User,
        *,
        status: TaskRequestStatus = TaskRequestStatus.PENDING,
        hourly_rate: str = "10.00",
        duration: int = 2,
        task_id: int | None = None,
    ) -> TaskRequest:
        task_request = TaskRequest(
            description="Assemble a wardrobe",
            city_id=city.id,
            duration=duration,
            sender_id=sender.id,
            tasker_id=tasker.id,
            hourly_rate=Decimal(hourly_rate),
            status=status,
        )
        if task_id is not None:
            task_request.id = task_id
        task_request.categories = [db_session.get(Category, category.id)]
        task_request.availability = [TaskRequestAvailability(date=today(), time_slot="morning")]
        db_session.add(task_request)
        db_session.commit()
        db_session.refresh(task_request)
        return task_request

    return _factory
