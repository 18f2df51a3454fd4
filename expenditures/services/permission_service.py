"""Domain-scoped authority checks.

A role held in a permission domain reaches a child domain when the child is
the permission domain itself, or when the permission domain's skill has the
child domain's skill at the supplied child skill index.
"""

from expenditures.models.role_grant import ColonyRole
from expenditures.services.collaborators import AuthorityRegistry, SkillTree
from expenditures.services.errors import BadChildSkillError, PermissionDeniedError


class PermissionService:
    """Combines the role registry with the skill tree."""

    def __init__(self, roles: AuthorityRegistry, skills: SkillTree):
        self.roles = roles
        self.skills = skills

    def validate_domain_inheritance(
        self,
        permission_domain_id: int,
        child_skill_index: int,
        child_domain_id: int,
    ) -> bool:
        """True when `child_domain_id` is reachable from `permission_domain_id`.

        Raises:
            NoSuchDomainError: If either domain does not exist
        """
        permission_domain = self.skills.domain(permission_domain_id)
        child_domain = self.skills.domain(child_domain_id)
        if permission_domain_id == child_domain_id:
            return True
        try:
            child_skill_id = self.skills.child_skill_id(
                permission_domain.skill_id, child_skill_index
            )
        except BadChildSkillError:
            return False
        return child_skill_id == child_domain.skill_id

    def require_domain_inheritance(
        self,
        permission_domain_id: int,
        child_skill_index: int,
        child_domain_id: int,
    ) -> None:
        if not self.validate_domain_inheritance(
            permission_domain_id, child_skill_index, child_domain_id
        ):
            raise BadChildSkillError(
                f"Child skill index {child_skill_index} of domain {permission_domain_id} "
                f"does not lead to domain {child_domain_id}"
            )

    def has_inherited_role(
        self,
        account: str,
        permission_domain_id: int,
        role: ColonyRole,
        child_skill_index: int,
        child_domain_id: int,
    ) -> bool:
        """Role held in the permission domain and reaching the child domain."""
        return self.roles.can_act(
            account, permission_domain_id, role
        ) and self.validate_domain_inheritance(
            permission_domain_id, child_skill_index, child_domain_id
        )

    def require_domain_authority(
        self,
        account: str,
        permission_domain_id: int,
        child_skill_index: int,
        child_domain_id: int,
        role: ColonyRole,
    ) -> None:
        """Gate for domain-scoped operations.

        Raises:
            NoSuchDomainError: If either domain does not exist
            BadChildSkillError: If the child index does not reach the child domain
            PermissionDeniedError: If the account lacks `role` in the permission domain
        """
        self.require_domain_inheritance(permission_domain_id, child_skill_index, child_domain_id)
        if not self.roles.can_act(account, permission_domain_id, role):
            raise PermissionDeniedError(
                f"{account} lacks {role.value} authority in domain {permission_domain_id}"
            )


__all__ = ["PermissionService"]
