"""SQLAlchemy base model with common fields and model exports."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# Base class for all models
Base = declarative_base()


class BaseModel:
    """Base model with common timestamp fields."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


# Import models to register them with Base (after Base is defined)
# This must be after Base declaration to avoid circular imports
from expenditures.models.audit_log import AuditLog  # noqa: E402
from expenditures.models.domain import Domain  # noqa: E402
from expenditures.models.expenditure import (  # noqa: E402
    Expenditure,
    ExpenditurePayout,
    ExpenditureRecipient,
    ExpenditureStatus,
)
from expenditures.models.funding_pot import (  # noqa: E402
    FundingPot,
    FundingPotAssociatedType,
    FundingPotBalance,
)
from expenditures.models.network_state import NetworkState  # noqa: E402
from expenditures.models.reputation_update import ReputationUpdate  # noqa: E402
from expenditures.models.role_grant import ColonyRole, RoleGrant  # noqa: E402
from expenditures.models.skill import Skill, SkillDescendant  # noqa: E402
from expenditures.models.token_balance import TokenBalance  # noqa: E402

__all__ = [
    "Base",
    "BaseModel",
    "AuditLog",
    "ColonyRole",
    "Domain",
    "Expenditure",
    "ExpenditurePayout",
    "ExpenditureRecipient",
    "ExpenditureStatus",
    "FundingPot",
    "FundingPotAssociatedType",
    "FundingPotBalance",
    "NetworkState",
    "ReputationUpdate",
    "RoleGrant",
    "Skill",
    "SkillDescendant",
    "TokenBalance",
]
