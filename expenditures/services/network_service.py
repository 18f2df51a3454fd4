"""Process-wide pause flag.

Unset by default. Only a RECOVERY-role holder in the root domain can set or
clear it; every mutating ledger operation checks it first.
"""

import logging

from sqlalchemy.orm import Session

from expenditures.constants import ROOT_DOMAIN_ID
from expenditures.models.network_state import NetworkState
from expenditures.models.role_grant import ColonyRole
from expenditures.services.collaborators import AuthorityRegistry
from expenditures.services.db import atomic
from expenditures.services.errors import PermissionDeniedError

logger = logging.getLogger(__name__)


class NetworkService:
    """Owns the single NetworkState row."""

    def __init__(self, db: Session, roles: AuthorityRegistry):
        """Initialize with database session and role registry."""
        self.db = db
        self.roles = roles

    def is_stopped(self) -> bool:
        state = self.db.query(NetworkState).first()
        return bool(state and state.stopped)

    def set_stopped(self, caller: str, stopped: bool) -> None:
        """Set or clear the pause flag.

        Raises:
            PermissionDeniedError: If caller lacks RECOVERY in the root domain
        """
        with atomic(self.db):
            if not self.roles.can_act(caller, ROOT_DOMAIN_ID, ColonyRole.RECOVERY):
                raise PermissionDeniedError(f"{caller} cannot change the pause flag")

            state = self.db.query(NetworkState).first()
            if state is None:
                state = NetworkState(stopped=stopped, changed_by=caller)
                self.db.add(state)
            else:
                state.stopped = stopped
                state.changed_by = caller
        logger.warning(f"Ledger {'stopped' if stopped else 'resumed'} by {caller}")


__all__ = ["NetworkService"]
