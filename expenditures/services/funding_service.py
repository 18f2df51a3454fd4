"""Funding pot ledger.

Tracks per-token balances and committed payouts of every pot, and keeps each
pot's `payouts_we_cannot_make` counter equal to the number of tokens whose
committed payouts exceed the balance. Expenditures can only be finalized
when that counter is zero.
"""

import logging

from expenditures.constants import ROOT_DOMAIN_ID
from expenditures.models.expenditure import Expenditure, ExpenditureStatus
from expenditures.models.funding_pot import (
    FundingPot,
    FundingPotAssociatedType,
    FundingPotBalance,
)
from expenditures.models.role_grant import ColonyRole
from expenditures.services.audit_service import AuditService
from expenditures.services.context import LedgerContext
from expenditures.services.errors import (
    BadExpenditureStateError,
    InsufficientFundsError,
    InvalidInputError,
    NotFoundError,
)
from expenditures.services.permission_service import PermissionService

logger = logging.getLogger(__name__)


class FundingService:
    """Pot creation, fund movement and shortfall bookkeeping."""

    def __init__(self, ctx: LedgerContext):
        """Initialize with ledger context."""
        self.ctx = ctx
        self.db = ctx.db
        self.permissions = PermissionService(ctx.roles, ctx.skills)

    # Pots

    def create_pot(
        self,
        associated_type: FundingPotAssociatedType,
        associated_type_id: int,
    ) -> FundingPot:
        """Allocate the next pot id. Callers run inside an operation."""
        pot = FundingPot(
            associated_type=associated_type,
            associated_type_id=associated_type_id,
            payouts_we_cannot_make=0,
        )
        self.db.add(pot)
        self.db.flush()
        logger.debug(f"Created funding pot {pot.id} for {associated_type.value} {associated_type_id}")
        return pot

    def get_pot_count(self) -> int:
        """Get the number of pots ever created.

        Returns:
            Highest pot id issued so far
        """
        return self.db.query(FundingPot).count()

    def get_pot(self, pot_id: int) -> FundingPot:
        """Get pot by id.

        Raises:
            NotFoundError: If the pot does not exist (including id 0)
        """
        pot = self.db.get(FundingPot, pot_id) if pot_id > 0 else None
        if pot is None:
            raise NotFoundError(f"Funding pot {pot_id} does not exist")
        return pot

    def get_pot_balance(self, pot_id: int, token: str) -> int:
        """Get the funds a pot holds in one token.

        Args:
            pot_id: Pot to read
            token: Token to read

        Returns:
            Balance, 0 when the pot never held the token

        Raises:
            NotFoundError: If the pot does not exist
        """
        self.get_pot(pot_id)
        row = self.db.query(FundingPotBalance).filter_by(pot_id=pot_id, token=token).first()
        return row.balance if row else 0

    def get_pot_payout(self, pot_id: int, token: str) -> int:
        """Get the payouts committed against a pot in one token.

        Args:
            pot_id: Pot to read
            token: Token to read

        Returns:
            Sum of outstanding payouts, 0 when none

        Raises:
            NotFoundError: If the pot does not exist
        """
        self.get_pot(pot_id)
        row = self.db.query(FundingPotBalance).filter_by(pot_id=pot_id, token=token).first()
        return row.payouts if row else 0

    def get_domain_from_pot(self, pot_id: int) -> int:
        """Domain a pot's funds belong to.

        Raises:
            NotFoundError: If the pot does not exist or is not tied to a domain
        """
        pot = self.get_pot(pot_id)
        if pot.associated_type == FundingPotAssociatedType.DOMAIN:
            return pot.associated_type_id
        if pot.associated_type == FundingPotAssociatedType.EXPENDITURE:
            return self._expenditure_for(pot).domain_id
        raise NotFoundError(f"Funding pot {pot_id} is not associated with a domain")

    # Bookkeeping (used inside operations by the expenditure and claim services)

    def update_committed_payout(
        self, pot_id: int, token: str, previous: int, new: int
    ) -> FundingPotBalance:
        """Replace one commitment of `previous` with `new` in the pot's aggregate."""
        return self._adjust(self.get_pot(pot_id), token, payouts_delta=new - previous)

    def return_surplus_to_root(self, pot_id: int, token: str, amount: int) -> FundingPotBalance:
        """Drop part of a commitment and hand its funds back to the root domain pot.

        Args:
            pot_id: Expenditure pot holding the commitment
            token: Token of the commitment
            amount: Committed amount that will not be paid out

        Returns:
            Updated balance row of the source pot
        """
        row = self._adjust(
            self.get_pot(pot_id), token, balance_delta=-amount, payouts_delta=-amount
        )
        root_pot_id = self.ctx.skills.domain(ROOT_DOMAIN_ID).funding_pot_id
        self._adjust(self.get_pot(root_pot_id), token, balance_delta=amount)
        return row

    def pay_out_from_pot(self, pot_id: int, token: str, amount: int) -> FundingPotBalance:
        """Debit a committed amount from both balance and payouts."""
        return self._adjust(
            self.get_pot(pot_id), token, balance_delta=-amount, payouts_delta=-amount
        )

    def _balance_row(self, pot_id: int, token: str) -> FundingPotBalance:
        row = self.db.query(FundingPotBalance).filter_by(pot_id=pot_id, token=token).first()
        if row is None:
            row = FundingPotBalance(pot_id=pot_id, token=token, balance=0, payouts=0)
            self.db.add(row)
            self.db.flush()
        return row

    def _adjust(
        self,
        pot: FundingPot,
        token: str,
        balance_delta: int = 0,
        payouts_delta: int = 0,
    ) -> FundingPotBalance:
        """Apply deltas and move the shortfall counter if the token crossed over."""
        row = self._balance_row(pot.id, token)
        was_short = row.is_short

        new_balance = row.balance + balance_delta
        if new_balance < 0:
            raise InsufficientFundsError(
                f"Funding pot {pot.id} holds {row.balance} {token}, needs {-balance_delta}"
            )
        new_payouts = row.payouts + payouts_delta
        if new_payouts < 0:
            raise InvalidInputError(
                f"Funding pot {pot.id} payouts for {token} would drop below zero"
            )

        row.balance = new_balance
        row.payouts = new_payouts

        if was_short and not row.is_short:
            pot.payouts_we_cannot_make -= 1
        elif row.is_short and not was_short:
            pot.payouts_we_cannot_make += 1

        self.db.flush()
        return row

    def _expenditure_for(self, pot: FundingPot) -> Expenditure:
        expenditure = self.db.get(Expenditure, pot.associated_type_id)
        if expenditure is None:
            raise NotFoundError(f"Expenditure {pot.associated_type_id} does not exist")
        return expenditure

    # Public operations

    def move_pot_funds(
        self,
        caller: str,
        permission_domain_id: int,
        from_child_skill_index: int,
        to_child_skill_index: int,
        from_pot_id: int,
        to_pot_id: int,
        amount: int,
        token: str,
    ) -> None:
        """Move funds between two pots.

        The caller needs FUNDING in the permission domain, which must reach the
        source pot's domain through `from_child_skill_index` and the destination
        pot's domain through `to_child_skill_index`.

        Raises:
            NotFoundError: If either pot does not exist
            PermissionDeniedError, NoSuchDomainError, BadChildSkillError: authority checks
            BadExpenditureStateError: Moving out of a non-cancelled expenditure pot,
                or into a non-active one
            InsufficientFundsError: If the source pot balance is too low
        """
        with self.ctx.operation("move_pot_funds"):
            if amount < 0:
                raise InvalidInputError("Amount must be non-negative")

            from_pot = self.get_pot(from_pot_id)
            to_pot = self.get_pot(to_pot_id)

            self.permissions.require_domain_authority(
                caller,
                permission_domain_id,
                from_child_skill_index,
                self.get_domain_from_pot(from_pot_id),
                ColonyRole.FUNDING,
            )
            self.permissions.require_domain_inheritance(
                permission_domain_id,
                to_child_skill_index,
                self.get_domain_from_pot(to_pot_id),
            )

            if from_pot.associated_type == FundingPotAssociatedType.EXPENDITURE:
                source = self._expenditure_for(from_pot)
                if source.status != ExpenditureStatus.CANCELLED:
                    raise BadExpenditureStateError(
                        f"Funds can only leave expenditure {source.id} once it is cancelled"
                    )
            if to_pot.associated_type == FundingPotAssociatedType.EXPENDITURE:
                target = self._expenditure_for(to_pot)
                if target.status != ExpenditureStatus.ACTIVE:
                    raise BadExpenditureStateError(
                        f"Expenditure {target.id} is {target.status.value} and cannot receive funds"
                    )

            self._adjust(from_pot, token, balance_delta=-amount)
            self._adjust(to_pot, token, balance_delta=amount)

            AuditService.log(
                self.db,
                "funding_pot",
                from_pot_id,
                "move_funds",
                actor=caller,
                changes={"to_pot_id": to_pot_id, "token": token, "amount": str(amount)},
            )

        logger.info(f"Moved {amount} {token} from pot {from_pot_id} to pot {to_pot_id} (by {caller})")

    def claim_colony_funds(self, token: str) -> int:
        """Credit the root domain pot with tokens the colony holds but no pot accounts for.

        Returns:
            Amount credited
        """
        with self.ctx.operation("claim_colony_funds"):
            held = self.ctx.tokens.balance_of(self.ctx.colony_address, token)
            accounted = sum(
                row.balance
                for row in self.db.query(FundingPotBalance).filter_by(token=token).all()
            )
            unclaimed = held - accounted
            if unclaimed <= 0:
                return 0

            root_pot_id = self.ctx.skills.domain(ROOT_DOMAIN_ID).funding_pot_id
            self._adjust(self.get_pot(root_pot_id), token, balance_delta=unclaimed)
            AuditService.log(
                self.db,
                "funding_pot",
                root_pot_id,
                "claim_colony_funds",
                changes={"token": token, "amount": str(unclaimed)},
            )

        logger.info(f"Claimed {unclaimed} {token} into root pot")
        return unclaimed


__all__ = ["FundingService"]
