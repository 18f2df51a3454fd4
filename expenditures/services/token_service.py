"""Database-backed token balances."""

import logging

from sqlalchemy.orm import Session

from expenditures.models.token_balance import TokenBalance

logger = logging.getLogger(__name__)


class DbTokenLedger:
    """Holder/token balances with refuse-on-insufficient transfers."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def _row(self, holder: str, token: str) -> TokenBalance:
        row = self.db.query(TokenBalance).filter_by(holder=holder, token=token).first()
        if row is None:
            row = TokenBalance(holder=holder, token=token, amount=0)
            self.db.add(row)
            self.db.flush()
        return row

    def balance_of(self, holder: str, token: str) -> int:
        row = self.db.query(TokenBalance).filter_by(holder=holder, token=token).first()
        return row.amount if row else 0

    def mint(self, token: str, to: str, amount: int) -> None:
        """Credit `to` out of thin air (test and setup use)."""
        if amount < 0:
            raise ValueError("Mint amount must be non-negative")
        row = self._row(to, token)
        row.amount += amount
        self.db.flush()

    def transfer(self, token: str, sender: str, to: str, amount: int) -> bool:
        """Move `amount` of `token`; returns False when sender is short."""
        if amount < 0:
            return False
        source = self._row(sender, token)
        if source.amount < amount:
            logger.warning(f"Transfer refused: {sender} holds {source.amount} {token}, needs {amount}")
            return False
        target = self._row(to, token)
        source.amount -= amount
        target.amount += amount
        self.db.flush()
        return True


__all__ = ["DbTokenLedger"]
