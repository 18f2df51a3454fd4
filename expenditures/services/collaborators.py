"""Interfaces of the systems the ledger consumes but does not own.

The ledger only reads from and writes to these; the database-backed
implementations in role_registry, skill_tree, token_service,
reputation_service and network_service are reference versions sharing the
ledger's session.
"""

from typing import NamedTuple, Protocol

from expenditures.models.role_grant import ColonyRole


class DomainView(NamedTuple):
    """What the ledger needs to know about a domain."""

    skill_id: int
    funding_pot_id: int


class AuthorityRegistry(Protocol):
    def can_act(self, account: str, domain_id: int, role: ColonyRole) -> bool: ...


class SkillTree(Protocol):
    def domain(self, domain_id: int) -> DomainView:
        """Raises NoSuchDomainError for unknown ids."""
        ...

    def domain_count(self) -> int: ...

    def child_skill_id(self, parent_skill_id: int, child_index: int) -> int:
        """Raises BadChildSkillError when the index is out of range."""
        ...

    def skill_exists(self, skill_id: int) -> bool: ...

    def is_global_skill(self, skill_id: int) -> bool: ...

    def is_deprecated_skill(self, skill_id: int) -> bool: ...


class TokenLedger(Protocol):
    def transfer(self, token: str, sender: str, to: str, amount: int) -> bool: ...

    def balance_of(self, holder: str, token: str) -> int: ...


class ReputationLog(Protocol):
    def append_update(self, account: str, skill_id: int, amount: int) -> None: ...


class PauseControl(Protocol):
    def is_stopped(self) -> bool: ...


__all__ = [
    "AuthorityRegistry",
    "DomainView",
    "PauseControl",
    "ReputationLog",
    "SkillTree",
    "TokenLedger",
]
