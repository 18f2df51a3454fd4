"""One-transaction payments.

Creates, funds, finalizes and claims an expenditure in a single atomic
operation. The service acts through its own agent account, which needs
ADMINISTRATION and FUNDING in the permission domain it is handed; the
caller's own authority is checked separately against the target domain.
Any failure along the way rolls back every step.
"""

import logging
from typing import NamedTuple

from expenditures.constants import ROOT_DOMAIN_ID
from expenditures.models.role_grant import ColonyRole
from expenditures.services.claim_service import ClaimService
from expenditures.services.config import Settings
from expenditures.services.context import LedgerContext
from expenditures.services.errors import PermissionDeniedError
from expenditures.services.expenditure_service import ExpenditureService
from expenditures.services.funding_service import FundingService
from expenditures.services.permission_service import PermissionService

logger = logging.getLogger(__name__)


class PaymentResult(NamedTuple):
    """Outcome of a one-transaction payment."""

    expenditure_id: int
    recipient_amount: int
    fee_amount: int
    reputation_amount: int


class OneTxPaymentService:
    """Atomic create → fund → finalize → claim."""

    def __init__(self, ctx: LedgerContext, agent: str):
        """Initialize with ledger context.

        Args:
            ctx: Ledger context
            agent: Account the service acts as when driving the expenditure
        """
        self.ctx = ctx
        self.agent = agent
        self.permissions = PermissionService(ctx.roles, ctx.skills)
        self.expenditures = ExpenditureService(ctx)
        self.funding = FundingService(ctx)
        self.claims = ClaimService(ctx)

    @classmethod
    def from_settings(cls, ctx: LedgerContext, settings: Settings) -> "OneTxPaymentService":
        """Service acting as the configured payment agent account."""
        return cls(ctx, settings.payment_agent)

    def pay(
        self,
        caller: str,
        permission_domain_id: int,
        child_skill_index: int,
        caller_permission_domain_id: int,
        caller_child_skill_index: int,
        recipient: str,
        token: str,
        amount: int,
        domain_id: int,
        skill_id: int = 0,
    ) -> PaymentResult:
        """Pay `recipient` out of the root domain's pot.

        Besides ADMINISTRATION and FUNDING reaching `domain_id`, the caller
        must hold FUNDING in the root domain itself.

        Raises:
            PermissionDeniedError, NoSuchDomainError, BadChildSkillError: authority checks
            Any error of the underlying create/move/finalize/claim steps
        """
        with self.ctx.operation("one_tx_payment"):
            self._validate_caller(
                caller, caller_permission_domain_id, caller_child_skill_index, domain_id
            )
            if not self.ctx.roles.can_act(caller, ROOT_DOMAIN_ID, ColonyRole.FUNDING):
                raise PermissionDeniedError(
                    f"{caller} lacks funding authority in the root domain"
                )

            root_pot_id = self.ctx.skills.domain(ROOT_DOMAIN_ID).funding_pot_id
            result = self._execute(
                permission_domain_id,
                child_skill_index,
                root_pot_id,
                recipient,
                token,
                amount,
                domain_id,
                skill_id,
            )

        logger.info(
            f"One-tx payment by {caller}: {amount} {token} to {recipient} "
            f"from root pot via expenditure {result.expenditure_id}"
        )
        return result

    def pay_funded_from_domain(
        self,
        caller: str,
        permission_domain_id: int,
        child_skill_index: int,
        caller_permission_domain_id: int,
        caller_child_skill_index: int,
        recipient: str,
        token: str,
        amount: int,
        domain_id: int,
        skill_id: int = 0,
    ) -> PaymentResult:
        """Pay `recipient` out of `domain_id`'s own pot."""
        with self.ctx.operation("one_tx_payment_from_domain"):
            self._validate_caller(
                caller, caller_permission_domain_id, caller_child_skill_index, domain_id
            )

            domain_pot_id = self.ctx.skills.domain(domain_id).funding_pot_id
            result = self._execute(
                permission_domain_id,
                child_skill_index,
                domain_pot_id,
                recipient,
                token,
                amount,
                domain_id,
                skill_id,
            )

        logger.info(
            f"One-tx payment by {caller}: {amount} {token} to {recipient} "
            f"from domain {domain_id} pot via expenditure {result.expenditure_id}"
        )
        return result

    def _validate_caller(
        self,
        caller: str,
        caller_permission_domain_id: int,
        caller_child_skill_index: int,
        domain_id: int,
    ) -> None:
        for role in (ColonyRole.ADMINISTRATION, ColonyRole.FUNDING):
            self.permissions.require_domain_authority(
                caller,
                caller_permission_domain_id,
                caller_child_skill_index,
                domain_id,
                role,
            )

    def _execute(
        self,
        permission_domain_id: int,
        child_skill_index: int,
        from_pot_id: int,
        recipient: str,
        token: str,
        amount: int,
        domain_id: int,
        skill_id: int,
    ) -> PaymentResult:
        expenditure = self.expenditures.create(
            self.agent, permission_domain_id, child_skill_index, domain_id
        )
        self.expenditures.set_recipient_payout(
            self.agent, expenditure.id, recipient, token, amount
        )
        if skill_id:
            self.expenditures.set_recipient_skill(self.agent, expenditure.id, recipient, skill_id)

        self.funding.move_pot_funds(
            self.agent,
            permission_domain_id,
            child_skill_index,
            child_skill_index,
            from_pot_id,
            expenditure.funding_pot_id,
            amount,
            token,
        )
        self.expenditures.finalize(self.agent, expenditure.id)
        claim = self.claims.claim(self.agent, expenditure.id, recipient, token)

        return PaymentResult(
            expenditure_id=expenditure.id,
            recipient_amount=claim.recipient_amount,
            fee_amount=claim.fee_amount,
            reputation_amount=claim.reputation_amount,
        )


__all__ = ["OneTxPaymentService", "PaymentResult"]
