"""Pytest configuration and shared fixtures for ledger tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from expenditures.constants import ROOT_DOMAIN_ID
from expenditures.models import Base, ColonyRole
from expenditures.services.colony_service import ColonyService
from expenditures.services.config import Settings
from expenditures.services.context import LedgerContext
from expenditures.services.funding_service import FundingService

FOUNDER = "founder"
ADMIN = "admin"
USER = "user"
RECIPIENT = "recipient"
AGENT = "one-tx-payment"
COLONY = "colony"
NETWORK = "network"
TOKEN = "CLNY"
OTHER_TOKEN = "OTHER"

START_TIME = 1_700_000_000


class FakeClock:
    """Controllable clock returning whole seconds."""

    def __init__(self, now: int = START_TIME):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def db_session():
    """Create test database session."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def settings():
    """Settings isolated from the developer's .env."""
    return Settings(
        _env_file=None,
        database_url="sqlite:///:memory:",
        colony_address=COLONY,
        native_token=TOKEN,
        fee_collector=NETWORK,
        fee_inverse=100,
        payment_agent=AGENT,
        founder_account=FOUNDER,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ctx(db_session, settings, clock):
    """Bootstrapped colony: founder holds every root role, ADMIN holds administration."""
    context = LedgerContext.from_settings(db_session, settings, clock=clock)
    ColonyService(context).bootstrap(FOUNDER)
    context.roles.set_user_role(FOUNDER, ADMIN, ROOT_DOMAIN_ID, ColonyRole.ADMINISTRATION, True)
    return context


@pytest.fixture
def fund_colony(ctx):
    """Mint tokens to the colony and account them to the root pot."""

    def _fund(token: str, amount: int) -> int:
        ctx.tokens.mint(token, COLONY, amount)
        return FundingService(ctx).claim_colony_funds(token)

    return _fund


@pytest.fixture
def global_skill(ctx):
    """Committed, non-deprecated global skill id."""
    skill = ctx.skills.add_global_skill()
    ctx.db.commit()
    return skill.id


@pytest.fixture
def subdomain(ctx):
    """Committed subdomain of the root domain (reached from root by child index 0)."""
    return ColonyService(ctx).add_domain(FOUNDER, ROOT_DOMAIN_ID, 0, ROOT_DOMAIN_ID)
