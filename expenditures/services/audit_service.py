"""Audit service for logging ledger lifecycle events."""

from sqlalchemy.orm import Session

from expenditures.models.audit_log import AuditLog


class AuditService:
    """Service for audit log operations.

    Entries are added to the caller's session, so they commit or roll back
    together with the operation they describe.
    """

    @staticmethod
    def log(
        db: Session,
        entity_type: str,
        entity_id: int,
        action: str,
        actor: str | None = None,
        changes: dict | None = None,
    ) -> AuditLog:
        """Create audit log entry (one-liner).

        Args:
            db: Database session
            entity_type: Type of entity ("expenditure", "funding_pot", etc.)
            entity_id: Primary key of the entity
            action: Action performed ("create", "finalize", etc.)
            actor: Account that performed the action (optional)
            changes: Optional JSON snapshot of changed fields

        Returns:
            Created AuditLog object
        """
        audit = AuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor=actor,
            changes=changes,
        )
        db.add(audit)
        return audit

    @staticmethod
    def history(db: Session, entity_type: str, entity_id: int) -> list[AuditLog]:
        """Audit entries for one entity, oldest first."""
        return (
            db.query(AuditLog)
            .filter_by(entity_type=entity_type, entity_id=entity_id)
            .order_by(AuditLog.id)
            .all()
        )


__all__ = ["AuditService"]
