"""Ledger context: session, collaborators, clock and fee settings in one place."""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator

from sqlalchemy.orm import Session

from expenditures.constants import COLONY_TOKEN
from expenditures.services.collaborators import (
    AuthorityRegistry,
    PauseControl,
    ReputationLog,
    SkillTree,
    TokenLedger,
)
from expenditures.services.config import Settings
from expenditures.services.db import ATOMIC_DEPTH_KEY, atomic
from expenditures.services.errors import LedgerError, StoppedError
from expenditures.services.network_service import NetworkService
from expenditures.services.reputation_service import DbReputationLog
from expenditures.services.role_registry import DbRoleRegistry
from expenditures.services.skill_tree import DbSkillTree
from expenditures.services.token_service import DbTokenLedger

logger = logging.getLogger(__name__)


def current_timestamp() -> int:
    """Unix time in whole seconds."""
    return int(time.time())


@dataclass
class LedgerContext:
    """Everything a ledger service needs.

    Services never talk to collaborators except through this object, and
    every public mutating entry point goes through `operation()`.
    """

    db: Session
    roles: AuthorityRegistry
    skills: SkillTree
    tokens: TokenLedger
    reputation: ReputationLog
    network: PauseControl
    colony_address: str = "colony"
    native_token: str = COLONY_TOKEN
    fee_collector: str = "network"
    fee_inverse: int = 100
    clock: Callable[[], int] = field(default=current_timestamp)

    @classmethod
    def from_settings(
        cls,
        db: Session,
        settings: Settings,
        clock: Callable[[], int] = current_timestamp,
    ) -> "LedgerContext":
        """Wire the database-backed collaborators around one session."""
        roles = DbRoleRegistry(db)
        return cls(
            db=db,
            roles=roles,
            skills=DbSkillTree(db),
            tokens=DbTokenLedger(db),
            reputation=DbReputationLog(db),
            network=NetworkService(db, roles),
            colony_address=settings.colony_address,
            native_token=settings.native_token,
            fee_collector=settings.fee_collector,
            fee_inverse=settings.fee_inverse,
            clock=clock,
        )

    def now(self) -> int:
        return self.clock()

    @contextmanager
    def operation(self, name: str) -> Iterator[Session]:
        """Run a mutating operation atomically, rejecting it while paused.

        Args:
            name: Operation name used in log lines

        Raises:
            StoppedError: If the pause flag is set
        """
        outermost = not self.db.info.get(ATOMIC_DEPTH_KEY)
        try:
            with atomic(self.db) as db:
                if self.network.is_stopped():
                    raise StoppedError(f"Ledger is stopped; {name} rejected")
                yield db
        except LedgerError as e:
            if outermost:
                logger.warning(f"{name} failed [{e.code}]: {e.message}")
            raise


__all__ = ["LedgerContext", "current_timestamp"]
