"""Colony setup: root domain bootstrap and subdomain creation."""

import logging

from expenditures.constants import ROOT_DOMAIN_ID
from expenditures.models.domain import Domain
from expenditures.models.funding_pot import FundingPotAssociatedType
from expenditures.models.role_grant import ColonyRole
from expenditures.services.audit_service import AuditService
from expenditures.services.context import LedgerContext
from expenditures.services.errors import InvalidInputError
from expenditures.services.funding_service import FundingService
from expenditures.services.permission_service import PermissionService
from expenditures.services.role_registry import DbRoleRegistry
from expenditures.services.skill_tree import DbSkillTree

logger = logging.getLogger(__name__)


class ColonyService:
    """Builds the domain tree the ledger runs against.

    Works with the database-backed skill tree and role registry only.
    """

    def __init__(self, ctx: LedgerContext):
        """Initialize with ledger context."""
        if not isinstance(ctx.skills, DbSkillTree) or not isinstance(ctx.roles, DbRoleRegistry):
            raise TypeError("ColonyService requires the database-backed skill tree and roles")
        self.ctx = ctx
        self.db = ctx.db
        self.skills: DbSkillTree = ctx.skills
        self.roles: DbRoleRegistry = ctx.roles
        self.funding = FundingService(ctx)
        self.permissions = PermissionService(ctx.roles, ctx.skills)

    def bootstrap(self, founder: str) -> Domain:
        """Create the root domain (id 1) and its pot, granting every role to `founder`.

        Raises:
            InvalidInputError: If the colony already has a root domain
        """
        with self.ctx.operation("bootstrap_colony"):
            if self.skills.domain_count() > 0:
                raise InvalidInputError("Colony is already bootstrapped")

            domain = self._create_domain(parent_skill_id=None)
            if domain.id != ROOT_DOMAIN_ID:
                raise InvalidInputError(f"Root domain got id {domain.id}")

            for role in ColonyRole:
                self.roles.grant(founder, ROOT_DOMAIN_ID, role)

            AuditService.log(self.db, "domain", domain.id, "bootstrap", actor=founder)

        logger.info(f"Colony bootstrapped: root domain {domain.id}, founder {founder}")
        return domain

    def add_domain(
        self,
        caller: str,
        permission_domain_id: int,
        child_skill_index: int,
        parent_domain_id: int,
    ) -> Domain:
        """Add a subdomain under `parent_domain_id`.

        Args:
            caller: Account adding the domain
            permission_domain_id: Domain in which the caller holds ARCHITECTURE
            child_skill_index: Index leading from the permission domain to the parent
            parent_domain_id: Domain the new one is nested under

        Returns:
            The new domain

        Raises:
            NoSuchDomainError: Unknown permission or parent domain
            BadChildSkillError: The index does not lead to the parent domain
            PermissionDeniedError: Caller lacks ARCHITECTURE in the permission domain
        """
        with self.ctx.operation("add_domain"):
            self.permissions.require_domain_authority(
                caller,
                permission_domain_id,
                child_skill_index,
                parent_domain_id,
                ColonyRole.ARCHITECTURE,
            )
            parent = self.skills.domain(parent_domain_id)
            domain = self._create_domain(parent_skill_id=parent.skill_id)
            AuditService.log(
                self.db,
                "domain",
                domain.id,
                "create",
                actor=caller,
                changes={
                    "parent_domain_id": parent_domain_id,
                    "permission_domain_id": permission_domain_id,
                },
            )

        logger.info(f"Added domain {domain.id} under domain {parent_domain_id}")
        return domain

    def _create_domain(self, parent_skill_id: int | None) -> Domain:
        skill = self.skills.add_skill(parent_id=parent_skill_id)
        pot = self.funding.create_pot(FundingPotAssociatedType.DOMAIN, 0)
        domain = self.skills.add_domain_record(skill.id, pot.id)
        pot.associated_type_id = domain.id
        self.db.flush()
        return domain


__all__ = ["ColonyService"]
