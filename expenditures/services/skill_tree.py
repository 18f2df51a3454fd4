"""Database-backed domain/skill tree.

Each skill keeps an ordered list of all of its descendants (any depth), so
`child_skill_id(ancestor, i)` reaches any skill below the ancestor with a
single index.
"""

from sqlalchemy.orm import Session

from expenditures.models.domain import Domain
from expenditures.models.skill import Skill, SkillDescendant
from expenditures.services.collaborators import DomainView
from expenditures.services.errors import (
    BadChildSkillError,
    DeprecatedSkillError,
    InvalidSkillError,
    NoSuchDomainError,
)


class DbSkillTree:
    """Reads and minimal setup writes for the skill and domain tables."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def domain(self, domain_id: int) -> DomainView:
        record = self.db.get(Domain, domain_id) if domain_id > 0 else None
        if record is None:
            raise NoSuchDomainError(f"Domain {domain_id} does not exist")
        return DomainView(skill_id=record.skill_id, funding_pot_id=record.funding_pot_id)

    def domain_count(self) -> int:
        return self.db.query(Domain).count()

    def child_skill_id(self, parent_skill_id: int, child_index: int) -> int:
        entry = (
            self.db.query(SkillDescendant)
            .filter_by(ancestor_id=parent_skill_id, child_index=child_index)
            .first()
        )
        if entry is None:
            raise BadChildSkillError(
                f"Skill {parent_skill_id} has no child at index {child_index}"
            )
        return entry.descendant_id

    def skill_exists(self, skill_id: int) -> bool:
        return skill_id > 0 and self.db.get(Skill, skill_id) is not None

    def is_global_skill(self, skill_id: int) -> bool:
        skill = self.db.get(Skill, skill_id)
        return skill is not None and skill.is_global

    def is_deprecated_skill(self, skill_id: int) -> bool:
        skill = self.db.get(Skill, skill_id)
        return skill is not None and skill.deprecated

    def add_skill(self, parent_id: int | None = None, is_global: bool = False) -> Skill:
        """Add a skill, appending it to the descendant list of every ancestor."""
        if parent_id is not None and not self.skill_exists(parent_id):
            raise InvalidSkillError(f"Parent skill {parent_id} does not exist")

        skill = Skill(parent_id=parent_id, is_global=is_global)
        self.db.add(skill)
        self.db.flush()

        ancestor_id = parent_id
        while ancestor_id is not None:
            ancestor = self.db.get(Skill, ancestor_id)
            self.db.add(
                SkillDescendant(
                    ancestor_id=ancestor.id,
                    child_index=ancestor.n_children,
                    descendant_id=skill.id,
                )
            )
            ancestor.n_children += 1
            ancestor_id = ancestor.parent_id

        self.db.flush()
        return skill

    def add_global_skill(self) -> Skill:
        return self.add_skill(is_global=True)

    def deprecate_global_skill(self, skill_id: int) -> Skill:
        skill = self.db.get(Skill, skill_id) if skill_id > 0 else None
        if skill is None or not skill.is_global:
            raise InvalidSkillError(f"Skill {skill_id} is not a global skill")
        if skill.deprecated:
            raise DeprecatedSkillError(f"Skill {skill_id} is already deprecated")
        skill.deprecated = True
        self.db.flush()
        return skill

    def add_domain_record(self, skill_id: int, funding_pot_id: int) -> Domain:
        domain = Domain(skill_id=skill_id, funding_pot_id=funding_pot_id)
        self.db.add(domain)
        self.db.flush()
        return domain


__all__ = ["DbSkillTree"]
