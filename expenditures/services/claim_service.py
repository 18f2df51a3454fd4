"""Payout and claim engine.

Claiming pays one recipient's committed amount in one token:

    reputation = wmul(payout, payout_scalar)
    cash       = min(payout, reputation)
    fee        = network fee on cash
    recipient  ← cash - fee
    collector  ← fee
    root pot   ← payout - cash

A scalar below 1.0 shrinks both cash and reputation; a scalar above 1.0
boosts reputation only. Cash never exceeds what was committed.
"""

import logging
from typing import NamedTuple

from expenditures.constants import WAD
from expenditures.models.expenditure import ExpenditureStatus
from expenditures.services.audit_service import AuditService
from expenditures.services.context import LedgerContext
from expenditures.services.errors import (
    ExpenditureCancelledError,
    NotFinalizedError,
    TooEarlyError,
    TransferFailedError,
)
from expenditures.services.expenditure_service import ExpenditureService
from expenditures.services.funding_service import FundingService

logger = logging.getLogger(__name__)


class ClaimResult(NamedTuple):
    """Outcome of one claim."""

    recipient_amount: int
    fee_amount: int
    reputation_amount: int


def wmul(x: int, y: int) -> int:
    """WAD fixed-point multiply, rounding half up."""
    return (x * y + WAD // 2) // WAD


def calculate_network_fee(amount: int, fee_inverse: int) -> int:
    """Fee owed on a payout of `amount`.

    One unit more than amount // fee_inverse, so small payouts still pay
    something; all of it when fee_inverse is 1; nothing on a zero payout.
    """
    if amount == 0 or fee_inverse == 1:
        return amount
    return amount // fee_inverse + 1


class ClaimService:
    """Settle finalized expenditures recipient by recipient."""

    def __init__(self, ctx: LedgerContext):
        """Initialize with ledger context."""
        self.ctx = ctx
        self.db = ctx.db
        self.expenditures = ExpenditureService(ctx)
        self.funding = FundingService(ctx)

    def claim(self, caller: str, expenditure_id: int, recipient: str, token: str) -> ClaimResult:
        """Pay out what `recipient` is owed in `token`.

        Anyone may call this; funds always go to the recorded recipient. A
        second claim for the same recipient and token finds nothing owed and
        succeeds without effect.

        Raises:
            NotFoundError: Unknown expenditure
            ExpenditureCancelledError: Expenditure was cancelled
            NotFinalizedError: Expenditure is still active
            TooEarlyError: Recipient's claim delay has not elapsed
            TransferFailedError: Token collaborator refused a transfer
        """
        with self.ctx.operation("claim_expenditure_payout"):
            expenditure = self.expenditures.get(expenditure_id)
            if expenditure.status == ExpenditureStatus.CANCELLED:
                raise ExpenditureCancelledError(f"Expenditure {expenditure_id} was cancelled")
            if expenditure.status != ExpenditureStatus.FINALIZED:
                raise NotFinalizedError(f"Expenditure {expenditure_id} is not finalized")

            terms = self.expenditures.get_recipient(expenditure_id, recipient)
            claimable_at = expenditure.finalized_timestamp + terms.claim_delay
            if self.ctx.now() < claimable_at:
                raise TooEarlyError(
                    f"{recipient} cannot claim from expenditure {expenditure_id} before {claimable_at}"
                )

            payout_row = self.expenditures.find_payout(expenditure_id, recipient, token)
            payout = payout_row.amount if payout_row else 0
            if payout == 0:
                return ClaimResult(recipient_amount=0, fee_amount=0, reputation_amount=0)

            payout_row.amount = 0

            reputation_amount = wmul(payout, terms.payout_scalar)
            cash_amount = min(payout, reputation_amount)
            surplus = payout - cash_amount

            pot_id = expenditure.funding_pot_id
            if surplus > 0:
                self.funding.return_surplus_to_root(pot_id, token, surplus)
            self.funding.pay_out_from_pot(pot_id, token, cash_amount)

            if token == self.ctx.native_token:
                domain_skill_id = self.ctx.skills.domain(expenditure.domain_id).skill_id
                self.ctx.reputation.append_update(recipient, domain_skill_id, reputation_amount)
                for skill_id in terms.skills:
                    self.ctx.reputation.append_update(recipient, skill_id, reputation_amount)

            fee = calculate_network_fee(cash_amount, self.ctx.fee_inverse)
            self._transfer(token, recipient, cash_amount - fee)
            self._transfer(token, self.ctx.fee_collector, fee)

            AuditService.log(
                self.db,
                "expenditure",
                expenditure_id,
                "claim",
                actor=caller,
                changes={
                    "recipient": recipient,
                    "token": token,
                    "payout": str(payout),
                    "paid": str(cash_amount - fee),
                    "fee": str(fee),
                },
            )

        logger.info(
            f"Expenditure {expenditure_id}: {recipient} claimed {cash_amount - fee} {token} "
            f"(fee {fee}, reputation {reputation_amount})"
        )
        return ClaimResult(
            recipient_amount=cash_amount - fee,
            fee_amount=fee,
            reputation_amount=reputation_amount,
        )

    def _transfer(self, token: str, to: str, amount: int) -> None:
        if amount == 0:
            return
        if not self.ctx.tokens.transfer(token, self.ctx.colony_address, to, amount):
            raise TransferFailedError(f"Transfer of {amount} {token} to {to} failed")


__all__ = ["ClaimResult", "ClaimService", "calculate_network_fee", "wmul"]
