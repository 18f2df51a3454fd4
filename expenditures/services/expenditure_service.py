"""Expenditure state machine.

    ACTIVE → CANCELLED   (owner)
    ACTIVE → FINALIZED   (owner, funding pot fully covers every payout)

Both targets are terminal. While ACTIVE the owner may reassign ownership and
edit recipient skills and payouts. Arbitration holders may adjust payout
scalars and claim delays in any status.
"""

import logging
from typing import NamedTuple

from expenditures.constants import WAD
from expenditures.models.expenditure import (
    Expenditure,
    ExpenditurePayout,
    ExpenditureRecipient,
    ExpenditureStatus,
)
from expenditures.models.funding_pot import FundingPotAssociatedType
from expenditures.models.role_grant import ColonyRole
from expenditures.services.audit_service import AuditService
from expenditures.services.context import LedgerContext
from expenditures.services.errors import (
    DeprecatedSkillError,
    InvalidInputError,
    InvalidSkillError,
    NotActiveError,
    NotFoundError,
    NotFundedError,
    NotOwnerError,
)
from expenditures.services.funding_service import FundingService
from expenditures.services.permission_service import PermissionService

logger = logging.getLogger(__name__)


class RecipientView(NamedTuple):
    """Recipient terms as seen by readers; defaults apply when never set."""

    claim_delay: int
    payout_scalar: int
    skills: list[int]


class ExpenditureService:
    """Create and drive expenditures through their lifecycle."""

    def __init__(self, ctx: LedgerContext):
        """Initialize with ledger context."""
        self.ctx = ctx
        self.db = ctx.db
        self.funding = FundingService(ctx)
        self.permissions = PermissionService(ctx.roles, ctx.skills)

    # Reads

    def get_count(self) -> int:
        """Get the number of expenditures ever created.

        Returns:
            Highest expenditure id issued so far
        """
        return self.db.query(Expenditure).count()

    def get(self, expenditure_id: int) -> Expenditure:
        """Get expenditure by id.

        Raises:
            NotFoundError: If no expenditure has this id (id 0 never exists)
        """
        expenditure = self.db.get(Expenditure, expenditure_id) if expenditure_id > 0 else None
        if expenditure is None:
            raise NotFoundError(f"Expenditure {expenditure_id} does not exist")
        return expenditure

    def get_recipient(self, expenditure_id: int, recipient: str) -> RecipientView:
        """Get a recipient's claim terms.

        Args:
            expenditure_id: Expenditure to look in
            recipient: Recipient account

        Returns:
            RecipientView; defaults (no delay, scalar 1.0, no skills) when unset

        Raises:
            NotFoundError: Unknown expenditure
        """
        self.get(expenditure_id)
        record = self.find_recipient(expenditure_id, recipient)
        if record is None:
            return RecipientView(claim_delay=0, payout_scalar=WAD, skills=[])
        return RecipientView(
            claim_delay=record.claim_delay,
            payout_scalar=record.payout_scalar,
            skills=record.skills,
        )

    def get_payout(self, expenditure_id: int, recipient: str, token: str) -> int:
        """Get what a recipient is still owed in one token.

        Args:
            expenditure_id: Expenditure to look in
            recipient: Recipient account
            token: Token of the payout

        Returns:
            Outstanding payout, 0 when unset or already claimed

        Raises:
            NotFoundError: Unknown expenditure
        """
        self.get(expenditure_id)
        row = self.find_payout(expenditure_id, recipient, token)
        return row.amount if row else 0

    def find_recipient(self, expenditure_id: int, recipient: str) -> ExpenditureRecipient | None:
        return (
            self.db.query(ExpenditureRecipient)
            .filter_by(expenditure_id=expenditure_id, recipient=recipient)
            .first()
        )

    def find_payout(
        self, expenditure_id: int, recipient: str, token: str
    ) -> ExpenditurePayout | None:
        return (
            self.db.query(ExpenditurePayout)
            .filter_by(expenditure_id=expenditure_id, recipient=recipient, token=token)
            .first()
        )

    def recipient_record(self, expenditure_id: int, recipient: str) -> ExpenditureRecipient:
        """Recipient row, created with default terms on first touch."""
        record = self.find_recipient(expenditure_id, recipient)
        if record is None:
            record = ExpenditureRecipient(
                expenditure_id=expenditure_id,
                recipient=recipient,
                payout_scalar=WAD,
                claim_delay=0,
            )
            self.db.add(record)
            self.db.flush()
        return record

    def payout_record(self, expenditure_id: int, recipient: str, token: str) -> ExpenditurePayout:
        row = self.find_payout(expenditure_id, recipient, token)
        if row is None:
            row = ExpenditurePayout(
                expenditure_id=expenditure_id, recipient=recipient, token=token, amount=0
            )
            self.db.add(row)
            self.db.flush()
        return row

    def _owned_active(self, caller: str, expenditure_id: int) -> Expenditure:
        """Precondition shared by every owner-only mutator."""
        expenditure = self.get(expenditure_id)
        if expenditure.owner != caller:
            raise NotOwnerError(f"{caller} does not own expenditure {expenditure_id}")
        if expenditure.status.is_terminal:
            raise NotActiveError(
                f"Expenditure {expenditure_id} is {expenditure.status.value}"
            )
        return expenditure

    # Lifecycle

    def create(
        self,
        caller: str,
        permission_domain_id: int,
        child_skill_index: int,
        domain_id: int,
    ) -> Expenditure:
        """Create an expenditure and its funding pot, owned by the caller.

        Args:
            caller: Account creating the expenditure (becomes owner)
            permission_domain_id: Domain in which caller holds ADMINISTRATION
            child_skill_index: Index leading from permission domain to domain_id
            domain_id: Domain the expenditure is scoped to

        Returns:
            The new ACTIVE expenditure

        Raises:
            NoSuchDomainError, BadChildSkillError, PermissionDeniedError
        """
        with self.ctx.operation("create_expenditure"):
            self.permissions.require_domain_authority(
                caller,
                permission_domain_id,
                child_skill_index,
                domain_id,
                ColonyRole.ADMINISTRATION,
            )

            # Pot id first, then point it back at the new expenditure
            pot = self.funding.create_pot(FundingPotAssociatedType.EXPENDITURE, 0)
            expenditure = Expenditure(
                status=ExpenditureStatus.ACTIVE,
                owner=caller,
                funding_pot_id=pot.id,
                domain_id=domain_id,
                finalized_timestamp=0,
            )
            self.db.add(expenditure)
            self.db.flush()
            pot.associated_type_id = expenditure.id

            AuditService.log(
                self.db,
                "expenditure",
                expenditure.id,
                "create",
                actor=caller,
                changes={"domain_id": domain_id, "funding_pot_id": pot.id},
            )

        logger.info(
            f"Created expenditure {expenditure.id} in domain {domain_id} "
            f"(pot {pot.id}, owner {caller})"
        )
        return expenditure

    def transfer_owner(self, caller: str, expenditure_id: int, new_owner: str) -> Expenditure:
        """Hand an active expenditure to a new owner.

        Args:
            caller: Current owner
            expenditure_id: Expenditure to transfer
            new_owner: Account taking over

        Returns:
            Updated expenditure

        Raises:
            NotOwnerError: Caller does not own the expenditure
            NotActiveError: Expenditure is cancelled or finalized
        """
        with self.ctx.operation("transfer_expenditure"):
            expenditure = self._owned_active(caller, expenditure_id)
            expenditure.owner = new_owner
            AuditService.log(
                self.db,
                "expenditure",
                expenditure_id,
                "transfer",
                actor=caller,
                changes={"owner": new_owner},
            )
        logger.info(f"Expenditure {expenditure_id} transferred from {caller} to {new_owner}")
        return expenditure

    def cancel(self, caller: str, expenditure_id: int) -> Expenditure:
        """Cancel an active expenditure.

        Payouts stay recorded; cancelling only unlocks the pot so its funds
        can be moved back out.
        """
        with self.ctx.operation("cancel_expenditure"):
            expenditure = self._owned_active(caller, expenditure_id)
            expenditure.status = ExpenditureStatus.CANCELLED
            AuditService.log(
                self.db,
                "expenditure",
                expenditure_id,
                "cancel",
                actor=caller,
                changes={"status": ExpenditureStatus.CANCELLED.value},
            )
        logger.info(f"Expenditure {expenditure_id} cancelled by {caller}")
        return expenditure

    def finalize(self, caller: str, expenditure_id: int) -> Expenditure:
        """Finalize an active, fully funded expenditure.

        Raises:
            NotFundedError: If the pot is short on any token
        """
        with self.ctx.operation("finalize_expenditure"):
            expenditure = self._owned_active(caller, expenditure_id)
            pot = self.funding.get_pot(expenditure.funding_pot_id)
            if pot.payouts_we_cannot_make != 0:
                raise NotFundedError(
                    f"Expenditure {expenditure_id} pot is short on "
                    f"{pot.payouts_we_cannot_make} token(s)"
                )

            expenditure.status = ExpenditureStatus.FINALIZED
            expenditure.finalized_timestamp = self.ctx.now()
            AuditService.log(
                self.db,
                "expenditure",
                expenditure_id,
                "finalize",
                actor=caller,
                changes={
                    "status": ExpenditureStatus.FINALIZED.value,
                    "finalized_timestamp": expenditure.finalized_timestamp,
                },
            )
        logger.info(
            f"Expenditure {expenditure_id} finalized at {expenditure.finalized_timestamp}"
        )
        return expenditure

    # Recipient terms

    def set_recipient_skill(
        self, caller: str, expenditure_id: int, recipient: str, skill_id: int
    ) -> None:
        """Set the global skill credited when the recipient claims.

        Raises:
            InvalidSkillError: Unknown or non-global skill
            DeprecatedSkillError: Deprecated global skill
        """
        with self.ctx.operation("set_expenditure_skill"):
            self._owned_active(caller, expenditure_id)
            skills = self.ctx.skills
            if not skills.skill_exists(skill_id):
                raise InvalidSkillError(f"Skill {skill_id} does not exist")
            if not skills.is_global_skill(skill_id):
                raise InvalidSkillError(f"Skill {skill_id} is not a global skill")
            if skills.is_deprecated_skill(skill_id):
                raise DeprecatedSkillError(f"Skill {skill_id} is deprecated")

            self.recipient_record(expenditure_id, recipient).skill_id = skill_id
            self.db.flush()
            AuditService.log(
                self.db,
                "expenditure",
                expenditure_id,
                "set_skill",
                actor=caller,
                changes={"recipient": recipient, "skill_id": skill_id},
            )
        logger.info(f"Expenditure {expenditure_id}: skill for {recipient} set to {skill_id}")

    def set_recipient_payout(
        self,
        caller: str,
        expenditure_id: int,
        recipient: str,
        token: str,
        amount: int,
    ) -> None:
        """Set (not add to) what the recipient is owed in `token`."""
        with self.ctx.operation("set_expenditure_payout"):
            if amount < 0:
                raise InvalidInputError("Payout must be non-negative")
            expenditure = self._owned_active(caller, expenditure_id)

            self.recipient_record(expenditure_id, recipient)
            row = self.payout_record(expenditure_id, recipient, token)
            previous = row.amount
            row.amount = amount
            self.funding.update_committed_payout(
                expenditure.funding_pot_id, token, previous, amount
            )
            AuditService.log(
                self.db,
                "expenditure",
                expenditure_id,
                "set_payout",
                actor=caller,
                changes={
                    "recipient": recipient,
                    "token": token,
                    "previous": str(previous),
                    "amount": str(amount),
                },
            )
        logger.info(
            f"Expenditure {expenditure_id}: payout for {recipient} set to {amount} {token}"
        )

    def set_payout_scalar(
        self,
        caller: str,
        permission_domain_id: int,
        child_skill_index: int,
        expenditure_id: int,
        recipient: str,
        scalar: int,
    ) -> None:
        """Arbitration: set the WAD payout scalar. Allowed in any status."""
        with self.ctx.operation("set_expenditure_payout_scalar"):
            if scalar < 0:
                raise InvalidInputError("Payout scalar must be non-negative")
            expenditure = self.get(expenditure_id)
            self.permissions.require_domain_authority(
                caller,
                permission_domain_id,
                child_skill_index,
                expenditure.domain_id,
                ColonyRole.ARBITRATION,
            )
            self.recipient_record(expenditure_id, recipient).payout_scalar = scalar
            AuditService.log(
                self.db,
                "expenditure",
                expenditure_id,
                "set_payout_scalar",
                actor=caller,
                changes={"recipient": recipient, "payout_scalar": str(scalar)},
            )
        logger.info(f"Expenditure {expenditure_id}: payout scalar for {recipient} set to {scalar}")

    def set_claim_delay(
        self,
        caller: str,
        permission_domain_id: int,
        child_skill_index: int,
        expenditure_id: int,
        recipient: str,
        claim_delay: int,
    ) -> None:
        """Arbitration: set seconds to wait after finalization. Allowed in any status."""
        with self.ctx.operation("set_expenditure_claim_delay"):
            if claim_delay < 0:
                raise InvalidInputError("Claim delay must be non-negative")
            expenditure = self.get(expenditure_id)
            self.permissions.require_domain_authority(
                caller,
                permission_domain_id,
                child_skill_index,
                expenditure.domain_id,
                ColonyRole.ARBITRATION,
            )
            self.recipient_record(expenditure_id, recipient).claim_delay = claim_delay
            AuditService.log(
                self.db,
                "expenditure",
                expenditure_id,
                "set_claim_delay",
                actor=caller,
                changes={"recipient": recipient, "claim_delay": claim_delay},
            )
        logger.info(f"Expenditure {expenditure_id}: claim delay for {recipient} set to {claim_delay}s")


__all__ = ["ExpenditureService", "RecipientView"]
