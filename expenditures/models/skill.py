"""Skill ORM models: reputation categories and their descendant index."""

from sqlalchemy import Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from expenditures.models import Base, BaseModel


class Skill(Base, BaseModel):
    """Model representing a skill.

    Global skills have no parent and may receive reputation awards from any
    expenditure; local skills mirror domains. Deprecated skills reject new awards.
    """

    __tablename__ = "skills"

    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("skills.id"),
        nullable=True,
        comment="Parent skill (None for roots and global skills)",
    )
    is_global: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deprecated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    n_children: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
        comment="Number of descendants (all depths)",
    )

    __table_args__ = ({"sqlite_autoincrement": True},)

    def __repr__(self) -> str:
        return (
            f"<Skill(id={self.id}, parent_id={self.parent_id}, global={self.is_global}, "
            f"deprecated={self.deprecated})>"
        )


class SkillDescendant(Base, BaseModel):
    """Ordered descendant list entry: ancestor's child_index-th descendant.

    Every ancestor of a new skill gets a new entry, so a child index reaches
    any depth below the ancestor.
    """

    __tablename__ = "skill_descendants"

    ancestor_id: Mapped[int] = mapped_column(ForeignKey("skills.id"), nullable=False, index=True)
    child_index: Mapped[int] = mapped_column(nullable=False)
    descendant_id: Mapped[int] = mapped_column(ForeignKey("skills.id"), nullable=False)

    __table_args__ = (
        UniqueConstraint("ancestor_id", "child_index", name="uq_skill_child_index"),
    )

    def __repr__(self) -> str:
        return (
            f"<SkillDescendant(ancestor_id={self.ancestor_id}, index={self.child_index}, "
            f"descendant_id={self.descendant_id})>"
        )


__all__ = ["Skill", "SkillDescendant"]
