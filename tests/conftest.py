"""Pytest fixtures and factories.

All model modules are imported (via reelpay.main -> reelpay.models.db) before
Base.metadata.create_all() so relationship targets are configured.
"""
import os
import secrets
import sys
from datetime import timedelta
from pathlib import Path
import pytest
from fastapi.testclient import TestClient

# Point the application at a throwaway SQLite file before any reelpay import
# binds the engine, and keep JSON file logging out of the working tree.
TEST_DB_FILE = "test_reelpay.db"
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///./{TEST_DB_FILE}"
os.environ["LOG_FILE"] = ""

# Ensure project root on sys.path so 'reelpay' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from reelpay.main import app  # noqa: E402
from reelpay.database import Base, SessionLocal, engine  # noqa: E402
from reelpay.api import deps  # noqa: E402
from reelpay.models.db import User  # noqa: E402
from reelpay.models.db.enums import CampaignStatus, UserRole  # noqa: E402
from reelpay.services import campaigns as campaign_service  # noqa: E402
from reelpay.services import deposits, submissions  # noqa: E402
from reelpay.utils.time import utc_now  # noqa: E402

TestingSessionLocal = SessionLocal

@pytest.fixture(scope="session", autouse=True)
def create_test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    try:
        os.remove(TEST_DB_FILE)
    except OSError:
        pass

@pytest.fixture(autouse=True)
def _clean_tables(create_test_db):
    """Every test starts from empty tables (services commit, so no outer transaction to roll back)."""
    yield
    session = TestingSessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
    finally:
        session.close()

@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

# Override dependency
def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

app.dependency_overrides[deps.get_db] = _override_get_db

@pytest.fixture()
def client():
    return TestClient(app)

# ---------- Data factory helpers ----------

@pytest.fixture()
def user_factory(db_session):
    def _create(role: UserRole = UserRole.CREATOR, name: str | None = None):
        token = secrets.token_hex(4)
        user = User(
            name=name or f"{role.value.title()} {token}",
            email=f"{role.value.lower()}_{token}@example.com",
            api_key=f"rp_{secrets.token_hex(12)}",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create

@pytest.fixture()
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {user.api_key}"}
    return _headers

@pytest.fixture()
def campaign_factory(db_session, user_factory):
    """Campaign in the requested status, funded through a real ledgered deposit.

    ACTIVE campaigns start an hour ago so the current verification cycle is 0.
    """
    def _create(
        *,
        host: User | None = None,
        status: CampaignStatus = CampaignStatus.ACTIVE,
        funded_paise: int = 500000,
        rate: int = 3000,
        platforms=("INSTAGRAM", "YOUTUBE"),
        start_at=None,
        cycle_hours: int = 48,
        seed_budget_paise: int = 0,
    ):
        host = host or user_factory(UserRole.HOST)
        campaign = campaign_service.create_campaign(
            db_session,
            host_id=host.id,
            title=f"Campaign {secrets.token_hex(3)}",
            platforms=list(platforms),
            rate_per_1k_views_paise=rate,
            budget_total_paise=seed_budget_paise,
            cycle_hours=cycle_hours,
        )
        if status != CampaignStatus.DRAFT:
            campaign.status = CampaignStatus.ACTIVE
            campaign.start_at = start_at or (utc_now() - timedelta(hours=1))
            campaign.end_at = utc_now() + timedelta(days=30)
            db_session.commit()
        if funded_paise:
            deposits.deposit(db_session, campaign.id, funded_paise, f"seed-{secrets.token_hex(6)}", actor_id=host.id)
        if status in (CampaignStatus.PAUSED, CampaignStatus.ENDED):
            campaign.status = status
            db_session.commit()
        db_session.refresh(campaign)
        return campaign
    return _create

@pytest.fixture()
def submission_factory(db_session, user_factory):
    """Join + submit through the services; returns a PENDING_HOST_APPROVAL submission."""
    def _create(campaign, *, creator: User | None = None, platform: str = "INSTAGRAM", reel_url: str | None = None, now=None):
        creator = creator or user_factory(UserRole.CREATOR)
        submissions.join_campaign(
            db_session, campaign.id, creator.id, [platform], {platform: f"@{creator.name.split()[-1]}"}, now=now
        )
        return submissions.submit_content(
            db_session,
            campaign.id,
            creator.id,
            platform,
            reel_url or f"https://www.instagram.com/reel/{secrets.token_hex(5)}/",
            now=now,
        )
    return _create

@pytest.fixture()
def admin(user_factory):
    return user_factory(UserRole.ADMIN)
