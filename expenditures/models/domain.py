"""Domain ORM model: permission/funding scope mirrored by a local skill."""

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from expenditures.models import Base, BaseModel


class Domain(Base, BaseModel):
    """Model representing a domain in the colony's domain tree.

    Each domain owns one local (non-global) skill and one funding pot. The
    tree shape lives in the skill table; a domain is addressed from an
    ancestor by the child index of its skill.
    """

    __tablename__ = "domains"

    skill_id: Mapped[int] = mapped_column(
        ForeignKey("skills.id"),
        nullable=False,
        unique=True,
        comment="Local skill mirroring this domain",
    )
    funding_pot_id: Mapped[int] = mapped_column(
        ForeignKey("funding_pots.id"),
        nullable=False,
        unique=True,
        comment="Pot holding this domain's funds",
    )

    __table_args__ = ({"sqlite_autoincrement": True},)

    def __repr__(self) -> str:
        return f"<Domain(id={self.id}, skill_id={self.skill_id}, funding_pot_id={self.funding_pot_id})>"


__all__ = ["Domain"]
