"""Token balance ORM model for account holdings."""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from expenditures.models import Base, BaseModel
from expenditures.models.types import Uint256


class TokenBalance(Base, BaseModel):
    """Amount of one token held by one account."""

    __tablename__ = "token_balances"

    holder: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    token: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)

    __table_args__ = (UniqueConstraint("holder", "token", name="uq_holder_token"),)

    def __repr__(self) -> str:
        return f"<TokenBalance(holder={self.holder!r}, token={self.token!r}, amount={self.amount})>"


__all__ = ["TokenBalance"]
