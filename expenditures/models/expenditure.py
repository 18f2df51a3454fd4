"""Expenditure ORM models: commitments, recipients and per-token payouts."""

from enum import Enum

from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expenditures.constants import WAD
from expenditures.models import Base, BaseModel
from expenditures.models.types import Uint256


class ExpenditureStatus(str, Enum):
    """Lifecycle status of an expenditure."""

    ACTIVE = "active"
    CANCELLED = "cancelled"
    FINALIZED = "finalized"

    @property
    def is_terminal(self) -> bool:
        return self is not ExpenditureStatus.ACTIVE


class Expenditure(Base, BaseModel):
    """Model representing a pending disbursement commitment.

    Bound one-to-one with a funding pot created at the same time. Mutable by
    its owner while ACTIVE; CANCELLED and FINALIZED are terminal.
    """

    __tablename__ = "expenditures"

    status: Mapped[ExpenditureStatus] = mapped_column(
        SQLEnum(ExpenditureStatus),
        nullable=False,
        default=ExpenditureStatus.ACTIVE,
        comment="Lifecycle status",
    )
    owner: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Account controlling mutation while active",
    )
    funding_pot_id: Mapped[int] = mapped_column(
        ForeignKey("funding_pots.id"),
        nullable=False,
        unique=True,
        comment="Pot backing this expenditure (never shared)",
    )
    domain_id: Mapped[int] = mapped_column(
        ForeignKey("domains.id"),
        nullable=False,
        index=True,
        comment="Permission domain the expenditure is scoped to",
    )
    finalized_timestamp: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
        comment="Unix seconds at finalization, zero until then",
    )

    funding_pot: Mapped["FundingPot"] = relationship(  # noqa: F821
        "FundingPot",
        foreign_keys=[funding_pot_id],
    )
    recipients: Mapped[list["ExpenditureRecipient"]] = relationship(
        "ExpenditureRecipient",
        back_populates="expenditure",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_expenditure_owner", "owner"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return (
            f"<Expenditure(id={self.id}, status={self.status}, owner={self.owner!r}, "
            f"pot={self.funding_pot_id}, domain={self.domain_id})>"
        )


class ExpenditureRecipient(Base, BaseModel):
    """Per-recipient terms of an expenditure.

    Retained after claim so scalars and delays stay auditable.
    """

    __tablename__ = "expenditure_recipients"

    expenditure_id: Mapped[int] = mapped_column(
        ForeignKey("expenditures.id"),
        nullable=False,
        index=True,
    )
    recipient: Mapped[str] = mapped_column(String(255), nullable=False)
    skill_id: Mapped[int | None] = mapped_column(
        ForeignKey("skills.id"),
        nullable=True,
        comment="Global skill credited with reputation on claim",
    )
    payout_scalar: Mapped[int] = mapped_column(
        Uint256,
        nullable=False,
        default=WAD,
        comment="WAD fixed-point multiplier applied at claim time",
    )
    claim_delay: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
        comment="Seconds after finalization before a claim is allowed",
    )

    expenditure: Mapped["Expenditure"] = relationship("Expenditure", back_populates="recipients")

    __table_args__ = (
        UniqueConstraint("expenditure_id", "recipient", name="uq_expenditure_recipient"),
    )

    @property
    def skills(self) -> list[int]:
        return [self.skill_id] if self.skill_id else []

    def __repr__(self) -> str:
        return (
            f"<ExpenditureRecipient(expenditure_id={self.expenditure_id}, "
            f"recipient={self.recipient!r}, scalar={self.payout_scalar}, delay={self.claim_delay})>"
        )


class ExpenditurePayout(Base, BaseModel):
    """Amount owed to one recipient in one token."""

    __tablename__ = "expenditure_payouts"

    expenditure_id: Mapped[int] = mapped_column(
        ForeignKey("expenditures.id"),
        nullable=False,
        index=True,
    )
    recipient: Mapped[str] = mapped_column(String(255), nullable=False)
    token: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint(
            "expenditure_id", "recipient", "token", name="uq_expenditure_recipient_token"
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<ExpenditurePayout(expenditure_id={self.expenditure_id}, "
            f"recipient={self.recipient!r}, token={self.token!r}, amount={self.amount})>"
        )


__all__ = ["Expenditure", "ExpenditurePayout", "ExpenditureRecipient", "ExpenditureStatus"]
