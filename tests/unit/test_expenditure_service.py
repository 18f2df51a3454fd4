"""Unit tests for the expenditure state machine."""

import pytest

from expenditures.constants import ROOT_DOMAIN_ID, WAD
from expenditures.models import ExpenditureStatus, FundingPotAssociatedType
from expenditures.services.audit_service import AuditService
from expenditures.services.errors import (
    BadChildSkillError,
    DeprecatedSkillError,
    InvalidInputError,
    InvalidSkillError,
    NoSuchDomainError,
    NotActiveError,
    NotFoundError,
    NotFundedError,
    NotOwnerError,
    PermissionDeniedError,
)
from expenditures.services.expenditure_service import ExpenditureService
from expenditures.services.funding_service import FundingService

FOUNDER = "founder"
ADMIN = "admin"
USER = "user"
RECIPIENT = "recipient"
TOKEN = "CLNY"
OTHER_TOKEN = "OTHER"
ROOT_POT_ID = 1


@pytest.fixture
def expenditures(ctx):
    return ExpenditureService(ctx)


@pytest.fixture
def expenditure(expenditures):
    """Active expenditure in the root domain owned by ADMIN."""
    return expenditures.create(ADMIN, ROOT_DOMAIN_ID, 0, ROOT_DOMAIN_ID)


class TestCreateExpenditure:
    """Tests for expenditure creation."""

    def test_create_assigns_sequential_ids(self, expenditures):
        """Test that ids count up from 1 and the count follows."""
        assert expenditures.get_count() == 0
        first = expenditures.create(ADMIN, ROOT_DOMAIN_ID, 0, ROOT_DOMAIN_ID)
        second = expenditures.create(ADMIN, ROOT_DOMAIN_ID, 0, ROOT_DOMAIN_ID)

        assert (first.id, second.id) == (1, 2)
        assert expenditures.get_count() == 2

    def test_create_sets_initial_state(self, expenditure):
        """Test that a new expenditure is active, owned by its creator, unfinalized."""
        assert expenditure.status == ExpenditureStatus.ACTIVE
        assert expenditure.owner == ADMIN
        assert expenditure.domain_id == ROOT_DOMAIN_ID
        assert expenditure.finalized_timestamp == 0

    def test_create_allocates_associated_pot(self, ctx, expenditure):
        """Test that the expenditure gets a fresh pot pointing back at it."""
        funding = FundingService(ctx)
        assert funding.get_pot_count() == 2
        pot = funding.get_pot(expenditure.funding_pot_id)
        assert pot.associated_type == FundingPotAssociatedType.EXPENDITURE
        assert pot.associated_type_id == expenditure.id
        assert expenditure.funding_pot is pot

    def test_create_in_subdomain(self, expenditures, subdomain):
        """Test creating an expenditure in a child domain from root authority."""
        expenditure = expenditures.create(ADMIN, ROOT_DOMAIN_ID, 0, subdomain.id)
        assert expenditure.domain_id == subdomain.id

    def test_create_with_wrong_child_index(self, expenditures, subdomain):
        """Test that a child index not leading to the domain is rejected."""
        with pytest.raises(BadChildSkillError):
            expenditures.create(ADMIN, ROOT_DOMAIN_ID, 1, subdomain.id)

    def test_create_requires_administration(self, expenditures):
        """Test that accounts without ADMINISTRATION cannot create."""
        with pytest.raises(PermissionDeniedError):
            expenditures.create(USER, ROOT_DOMAIN_ID, 0, ROOT_DOMAIN_ID)
        assert expenditures.get_count() == 0

    def test_create_in_unknown_domain(self, expenditures):
        """Test that unknown domains are rejected."""
        with pytest.raises(NoSuchDomainError):
            expenditures.create(ADMIN, ROOT_DOMAIN_ID, 0, 42)

    def test_failed_create_allocates_nothing(self, ctx, expenditures):
        """Test that a rejected create leaves both counters untouched."""
        funding = FundingService(ctx)
        with pytest.raises(PermissionDeniedError):
            expenditures.create(USER, ROOT_DOMAIN_ID, 0, ROOT_DOMAIN_ID)

        assert funding.get_pot_count() == 1
        assert expenditures.create(ADMIN, ROOT_DOMAIN_ID, 0, ROOT_DOMAIN_ID).id == 1

    def test_create_writes_audit_entry(self, ctx, expenditure):
        """Test that creation is audited."""
        history = AuditService.history(ctx.db, "expenditure", expenditure.id)
        assert [entry.action for entry in history] == ["create"]
        assert history[0].actor == ADMIN


class TestLookup:
    """Tests for reads."""

    def test_unknown_expenditure(self, expenditures):
        """Test that unknown ids, including 0, raise NotFoundError."""
        with pytest.raises(NotFoundError):
            expenditures.get(0)
        with pytest.raises(NotFoundError):
            expenditures.get(100)

    def test_recipient_defaults(self, expenditures, expenditure):
        """Test that an untouched recipient reads with default terms."""
        view = expenditures.get_recipient(expenditure.id, RECIPIENT)
        assert view.claim_delay == 0
        assert view.payout_scalar == WAD
        assert view.skills == []
        assert expenditures.get_payout(expenditure.id, RECIPIENT, TOKEN) == 0


class TestOwnership:
    """Tests for owner-only mutators."""

    def test_transfer_owner(self, expenditures, expenditure):
        """Test that the owner can hand the expenditure over."""
        expenditures.transfer_owner(ADMIN, expenditure.id, USER)
        assert expenditures.get(expenditure.id).owner == USER

        with pytest.raises(NotOwnerError):
            expenditures.cancel(ADMIN, expenditure.id)
        expenditures.cancel(USER, expenditure.id)

    def test_non_owner_rejected(self, expenditures, expenditure):
        """Test that every owner-only mutator rejects other callers."""
        with pytest.raises(NotOwnerError):
            expenditures.set_recipient_payout(USER, expenditure.id, RECIPIENT, TOKEN, 1)
        with pytest.raises(NotOwnerError):
            expenditures.transfer_owner(USER, expenditure.id, USER)
        with pytest.raises(NotOwnerError):
            expenditures.cancel(USER, expenditure.id)
        with pytest.raises(NotOwnerError):
            expenditures.finalize(USER, expenditure.id)

    def test_owner_check_precedes_status_check(self, expenditures, expenditure):
        """Test that a non-owner gets NotOwnerError even on a cancelled expenditure."""
        expenditures.cancel(ADMIN, expenditure.id)
        with pytest.raises(NotOwnerError):
            expenditures.cancel(USER, expenditure.id)


class TestCancel:
    """Tests for cancellation."""

    def test_cancel(self, expenditures, expenditure):
        """Test that the owner can cancel an active expenditure."""
        expenditures.cancel(ADMIN, expenditure.id)
        cancelled = expenditures.get(expenditure.id)
        assert cancelled.status == ExpenditureStatus.CANCELLED
        assert cancelled.finalized_timestamp == 0

    def test_cancelled_is_terminal(self, expenditures, expenditure):
        """Test that a cancelled expenditure cannot be finalized or edited."""
        expenditures.cancel(ADMIN, expenditure.id)
        with pytest.raises(NotActiveError):
            expenditures.finalize(ADMIN, expenditure.id)
        with pytest.raises(NotActiveError):
            expenditures.cancel(ADMIN, expenditure.id)
        with pytest.raises(NotActiveError):
            expenditures.set_recipient_payout(ADMIN, expenditure.id, RECIPIENT, TOKEN, 1)


class TestFinalize:
    """Tests for finalization."""

    def test_finalize_stamps_clock(self, expenditures, expenditure, clock):
        """Test that finalization records the current time."""
        clock.advance(60)
        expenditures.finalize(ADMIN, expenditure.id)
        finalized = expenditures.get(expenditure.id)
        assert finalized.status == ExpenditureStatus.FINALIZED
        assert finalized.finalized_timestamp == clock.now

    def test_finalize_requires_full_funding(self, ctx, expenditures, expenditure, fund_colony):
        """Test that an underfunded expenditure cannot be finalized."""
        fund_colony(TOKEN, 100)
        funding = FundingService(ctx)
        expenditures.set_recipient_payout(ADMIN, expenditure.id, RECIPIENT, TOKEN, 100)

        with pytest.raises(NotFundedError):
            expenditures.finalize(ADMIN, expenditure.id)
        assert expenditures.get(expenditure.id).status == ExpenditureStatus.ACTIVE

        funding.move_pot_funds(
            FOUNDER, ROOT_DOMAIN_ID, 0, 0, ROOT_POT_ID, expenditure.funding_pot_id, 100, TOKEN
        )
        expenditures.finalize(ADMIN, expenditure.id)
        assert expenditures.get(expenditure.id).status == ExpenditureStatus.FINALIZED

    def test_finalized_is_terminal(self, expenditures, expenditure, global_skill):
        """Test that owner mutators reject a finalized expenditure."""
        expenditures.finalize(ADMIN, expenditure.id)

        with pytest.raises(NotActiveError):
            expenditures.finalize(ADMIN, expenditure.id)
        with pytest.raises(NotActiveError):
            expenditures.cancel(ADMIN, expenditure.id)
        with pytest.raises(NotActiveError):
            expenditures.transfer_owner(ADMIN, expenditure.id, USER)
        with pytest.raises(NotActiveError):
            expenditures.set_recipient_payout(ADMIN, expenditure.id, RECIPIENT, TOKEN, 1)
        with pytest.raises(NotActiveError):
            expenditures.set_recipient_skill(ADMIN, expenditure.id, RECIPIENT, global_skill)


class TestRecipientTerms:
    """Tests for payouts and skills."""

    def test_set_payout_replaces(self, expenditures, expenditure):
        """Test that setting a payout overwrites rather than accumulates."""
        expenditures.set_recipient_payout(ADMIN, expenditure.id, RECIPIENT, TOKEN, WAD)
        expenditures.set_recipient_payout(ADMIN, expenditure.id, RECIPIENT, TOKEN, 3 * WAD)
        assert expenditures.get_payout(expenditure.id, RECIPIENT, TOKEN) == 3 * WAD
        assert [r.recipient for r in expenditures.get(expenditure.id).recipients] == [RECIPIENT]

    def test_payouts_per_token(self, expenditures, expenditure):
        """Test that tokens are tracked independently."""
        expenditures.set_recipient_payout(ADMIN, expenditure.id, RECIPIENT, TOKEN, 10)
        expenditures.set_recipient_payout(ADMIN, expenditure.id, RECIPIENT, OTHER_TOKEN, 20)
        assert expenditures.get_payout(expenditure.id, RECIPIENT, TOKEN) == 10
        assert expenditures.get_payout(expenditure.id, RECIPIENT, OTHER_TOKEN) == 20

    def test_negative_payout_rejected(self, expenditures, expenditure):
        """Test that negative payouts are rejected."""
        with pytest.raises(InvalidInputError):
            expenditures.set_recipient_payout(ADMIN, expenditure.id, RECIPIENT, TOKEN, -1)

    def test_set_skill(self, expenditures, expenditure, global_skill):
        """Test that a global skill is recorded for the recipient."""
        expenditures.set_recipient_skill(ADMIN, expenditure.id, RECIPIENT, global_skill)
        assert expenditures.get_recipient(expenditure.id, RECIPIENT).skills == [global_skill]

    def test_terms_write_audit_entries(self, ctx, expenditures, expenditure, global_skill):
        """Test that payout and skill changes are audited with their values."""
        expenditures.set_recipient_payout(ADMIN, expenditure.id, RECIPIENT, TOKEN, 10)
        expenditures.set_recipient_payout(ADMIN, expenditure.id, RECIPIENT, TOKEN, 25)
        expenditures.set_recipient_skill(ADMIN, expenditure.id, RECIPIENT, global_skill)

        history = AuditService.history(ctx.db, "expenditure", expenditure.id)
        assert [entry.action for entry in history] == [
            "create",
            "set_payout",
            "set_payout",
            "set_skill",
        ]
        assert history[2].actor == ADMIN
        assert history[2].changes == {
            "recipient": RECIPIENT,
            "token": TOKEN,
            "previous": "10",
            "amount": "25",
        }
        assert history[3].changes == {"recipient": RECIPIENT, "skill_id": global_skill}

    def test_set_skill_rejects_domain_skill(self, ctx, expenditures, expenditure):
        """Test that local (domain) skills are not valid recipient skills."""
        root_skill = ctx.skills.domain(ROOT_DOMAIN_ID).skill_id
        with pytest.raises(InvalidSkillError):
            expenditures.set_recipient_skill(ADMIN, expenditure.id, RECIPIENT, root_skill)

    def test_set_skill_rejects_unknown_skill(self, expenditures, expenditure):
        """Test that nonexistent skills are rejected."""
        with pytest.raises(InvalidSkillError):
            expenditures.set_recipient_skill(ADMIN, expenditure.id, RECIPIENT, 10_000)

    def test_set_skill_rejects_deprecated_skill(self, ctx, expenditures, expenditure, global_skill):
        """Test that deprecated global skills are rejected."""
        ctx.skills.deprecate_global_skill(global_skill)
        ctx.db.commit()

        with pytest.raises(DeprecatedSkillError):
            expenditures.set_recipient_skill(ADMIN, expenditure.id, RECIPIENT, global_skill)


class TestArbitration:
    """Tests for arbitration-only recipient terms."""

    def test_set_payout_scalar(self, expenditures, expenditure):
        """Test that an arbitration holder can set the payout scalar."""
        expenditures.set_payout_scalar(
            FOUNDER, ROOT_DOMAIN_ID, 0, expenditure.id, RECIPIENT, WAD // 2
        )
        assert expenditures.get_recipient(expenditure.id, RECIPIENT).payout_scalar == WAD // 2

    def test_set_claim_delay(self, expenditures, expenditure):
        """Test that an arbitration holder can set the claim delay."""
        expenditures.set_claim_delay(FOUNDER, ROOT_DOMAIN_ID, 0, expenditure.id, RECIPIENT, 3600)
        assert expenditures.get_recipient(expenditure.id, RECIPIENT).claim_delay == 3600

    def test_requires_arbitration_role(self, expenditures, expenditure):
        """Test that the owner without ARBITRATION cannot adjust terms."""
        with pytest.raises(PermissionDeniedError):
            expenditures.set_payout_scalar(ADMIN, ROOT_DOMAIN_ID, 0, expenditure.id, RECIPIENT, 0)
        with pytest.raises(PermissionDeniedError):
            expenditures.set_claim_delay(ADMIN, ROOT_DOMAIN_ID, 0, expenditure.id, RECIPIENT, 1)

    def test_allowed_after_finalization(self, expenditures, expenditure):
        """Test that arbitration still applies once an expenditure is finalized."""
        expenditures.finalize(ADMIN, expenditure.id)
        expenditures.set_payout_scalar(
            FOUNDER, ROOT_DOMAIN_ID, 0, expenditure.id, RECIPIENT, 2 * WAD
        )
        assert expenditures.get_recipient(expenditure.id, RECIPIENT).payout_scalar == 2 * WAD

    def test_reaches_subdomain_expenditure(self, expenditures, subdomain):
        """Test that root arbitration reaches a child domain's expenditure by index."""
        expenditure = expenditures.create(ADMIN, ROOT_DOMAIN_ID, 0, subdomain.id)
        with pytest.raises(BadChildSkillError):
            expenditures.set_claim_delay(FOUNDER, ROOT_DOMAIN_ID, 3, expenditure.id, RECIPIENT, 1)
        expenditures.set_claim_delay(FOUNDER, ROOT_DOMAIN_ID, 0, expenditure.id, RECIPIENT, 1)
        assert expenditures.get_recipient(expenditure.id, RECIPIENT).claim_delay == 1

    def test_negative_values_rejected(self, expenditures, expenditure):
        """Test that negative scalars and delays are rejected."""
        with pytest.raises(InvalidInputError):
            expenditures.set_payout_scalar(FOUNDER, ROOT_DOMAIN_ID, 0, expenditure.id, RECIPIENT, -1)
        with pytest.raises(InvalidInputError):
            expenditures.set_claim_delay(FOUNDER, ROOT_DOMAIN_ID, 0, expenditure.id, RECIPIENT, -1)
