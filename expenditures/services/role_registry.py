"""Database-backed role registry answering "can this account act here"."""

import logging

from sqlalchemy.orm import Session

from expenditures.constants import ROOT_DOMAIN_ID
from expenditures.models.role_grant import ColonyRole, RoleGrant
from expenditures.services.audit_service import AuditService
from expenditures.services.db import atomic
from expenditures.services.errors import PermissionDeniedError

logger = logging.getLogger(__name__)


class DbRoleRegistry:
    """Roles are held per domain and are not inherited by subdomains.

    Reaching a subdomain from a role held higher up is the job of
    PermissionService, which combines a grant with a child-skill lookup.
    """

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def can_act(self, account: str, domain_id: int, role: ColonyRole) -> bool:
        return (
            self.db.query(RoleGrant)
            .filter_by(account=account, domain_id=domain_id, role=role)
            .first()
            is not None
        )

    def get_user_roles(self, account: str, domain_id: int) -> set[ColonyRole]:
        grants = self.db.query(RoleGrant).filter_by(account=account, domain_id=domain_id).all()
        return {grant.role for grant in grants}

    def grant(self, account: str, domain_id: int, role: ColonyRole) -> None:
        """Grant without an authority check; used by bootstrap."""
        if not self.can_act(account, domain_id, role):
            self.db.add(RoleGrant(account=account, domain_id=domain_id, role=role))
            self.db.flush()

    def set_user_role(
        self,
        caller: str,
        account: str,
        domain_id: int,
        role: ColonyRole,
        enabled: bool,
    ) -> None:
        """Grant or revoke a role. Caller must hold ROOT in the root domain.

        Raises:
            PermissionDeniedError: If caller is not a root user
        """
        with atomic(self.db):
            if not self.can_act(caller, ROOT_DOMAIN_ID, ColonyRole.ROOT):
                raise PermissionDeniedError(f"{caller} cannot assign roles")

            if enabled:
                self.grant(account, domain_id, role)
            else:
                self.db.query(RoleGrant).filter_by(
                    account=account, domain_id=domain_id, role=role
                ).delete()

            AuditService.log(
                self.db,
                "domain",
                domain_id,
                "grant_role" if enabled else "revoke_role",
                actor=caller,
                changes={"account": account, "role": role.value},
            )
        logger.info(f"Role {role.value} {'granted to' if enabled else 'revoked from'} {account} in domain {domain_id}")


__all__ = ["DbRoleRegistry"]
