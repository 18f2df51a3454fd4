"""Funding pot ORM models: escrow buckets and their per-token balances."""

from enum import Enum

from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expenditures.models import Base, BaseModel
from expenditures.models.types import Uint256


class FundingPotAssociatedType(str, Enum):
    """What a funding pot backs."""

    UNASSIGNED = "unassigned"
    DOMAIN = "domain"
    TASK = "task"
    PAYMENT = "payment"
    EXPENDITURE = "expenditure"


class FundingPot(Base, BaseModel):
    """Model representing a discrete pool of value.

    A pot is tagged with the entity it backs (associated_type, associated_type_id)
    and tracks how many tokens it is short on: payouts_we_cannot_make counts
    tokens whose committed payouts exceed the pot balance.
    """

    __tablename__ = "funding_pots"

    associated_type: Mapped[FundingPotAssociatedType] = mapped_column(
        SQLEnum(FundingPotAssociatedType),
        nullable=False,
        default=FundingPotAssociatedType.UNASSIGNED,
        comment="Entity type backed by this pot",
    )
    associated_type_id: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
        comment="Id of the backed entity",
    )
    payouts_we_cannot_make: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
        comment="Number of tokens where committed payouts exceed the balance",
    )

    balances: Mapped[list["FundingPotBalance"]] = relationship(
        "FundingPotBalance",
        back_populates="pot",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_funding_pot_association", "associated_type", "associated_type_id"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return (
            f"<FundingPot(id={self.id}, type={self.associated_type}, "
            f"type_id={self.associated_type_id}, short={self.payouts_we_cannot_make})>"
        )


class FundingPotBalance(Base, BaseModel):
    """Per-token balance and committed payouts of a funding pot."""

    __tablename__ = "funding_pot_balances"

    pot_id: Mapped[int] = mapped_column(
        ForeignKey("funding_pots.id"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(String(255), nullable=False)
    balance: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)
    payouts: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)

    pot: Mapped["FundingPot"] = relationship("FundingPot", back_populates="balances")

    __table_args__ = (UniqueConstraint("pot_id", "token", name="uq_pot_token"),)

    @property
    def is_short(self) -> bool:
        """True when committed payouts exceed what the pot holds."""
        return self.payouts > self.balance

    def __repr__(self) -> str:
        return (
            f"<FundingPotBalance(pot_id={self.pot_id}, token={self.token!r}, "
            f"balance={self.balance}, payouts={self.payouts})>"
        )


__all__ = ["FundingPot", "FundingPotAssociatedType", "FundingPotBalance"]
