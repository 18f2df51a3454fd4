"""Role grant ORM model for domain-scoped authority."""

from enum import Enum

from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from expenditures.models import Base, BaseModel


class ColonyRole(str, Enum):
    """Kinds of authority an account can hold in a domain."""

    RECOVERY = "recovery"
    """Can pause and unpause the ledger."""

    ROOT = "root"
    """Can grant and revoke roles."""

    ARBITRATION = "arbitration"
    """Can adjust payout scalars and claim delays."""

    ARCHITECTURE = "architecture"
    """Can add subdomains."""

    FUNDING = "funding"
    """Can move funds between pots."""

    ADMINISTRATION = "administration"
    """Can create expenditures."""


class RoleGrant(Base, BaseModel):
    """One role held by one account in one domain."""

    __tablename__ = "role_grants"

    account: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    domain_id: Mapped[int] = mapped_column(ForeignKey("domains.id"), nullable=False)
    role: Mapped[ColonyRole] = mapped_column(SQLEnum(ColonyRole), nullable=False)

    __table_args__ = (
        UniqueConstraint("account", "domain_id", "role", name="uq_role_grant"),
    )

    def __repr__(self) -> str:
        return f"<RoleGrant(account={self.account!r}, domain_id={self.domain_id}, role={self.role})>"


__all__ = ["ColonyRole", "RoleGrant"]
