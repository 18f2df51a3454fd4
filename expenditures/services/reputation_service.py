"""Database-backed reputation update log."""

from sqlalchemy.orm import Session

from expenditures.models.reputation_update import ReputationUpdate


class DbReputationLog:
    """Append-only log of earned reputation."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def append_update(self, account: str, skill_id: int, amount: int) -> None:
        self.db.add(ReputationUpdate(account=account, skill_id=skill_id, amount=amount))
        self.db.flush()

    def log_length(self) -> int:
        return self.db.query(ReputationUpdate).count()

    def entries(self, account: str | None = None) -> list[ReputationUpdate]:
        """Log entries in append order, optionally for one account."""
        query = self.db.query(ReputationUpdate)
        if account is not None:
            query = query.filter_by(account=account)
        return query.order_by(ReputationUpdate.id).all()


__all__ = ["DbReputationLog"]
