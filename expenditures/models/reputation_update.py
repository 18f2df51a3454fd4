"""Reputation update log ORM model."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from expenditures.models import Base, BaseModel
from expenditures.models.types import Uint256


class ReputationUpdate(Base, BaseModel):
    """Append-only entry crediting reputation to an account in a skill."""

    __tablename__ = "reputation_updates"

    account: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    skill_id: Mapped[int] = mapped_column(ForeignKey("skills.id"), nullable=False)
    amount: Mapped[int] = mapped_column(Uint256, nullable=False)

    __table_args__ = ({"sqlite_autoincrement": True},)

    def __repr__(self) -> str:
        return (
            f"<ReputationUpdate(id={self.id}, account={self.account!r}, "
            f"skill_id={self.skill_id}, amount={self.amount})>"
        )


__all__ = ["ReputationUpdate"]
