"""Unit tests for domain inheritance and domain-scoped authority."""

import pytest

from expenditures.constants import ROOT_DOMAIN_ID
from expenditures.models import ColonyRole
from expenditures.services.colony_service import ColonyService
from expenditures.services.errors import (
    BadChildSkillError,
    NoSuchDomainError,
    PermissionDeniedError,
)
from expenditures.services.permission_service import PermissionService

FOUNDER = "founder"
ADMIN = "admin"
USER = "user"


@pytest.fixture
def permissions(ctx):
    return PermissionService(ctx.roles, ctx.skills)


@pytest.fixture
def tree(ctx):
    """Root with children A and B; A has child A1.

    Root's descendant list is [A, B, A1], so A1 is reached from root at index 2
    and from A at index 0.
    """
    colony = ColonyService(ctx)
    a = colony.add_domain(FOUNDER, ROOT_DOMAIN_ID, 0, ROOT_DOMAIN_ID)
    b = colony.add_domain(FOUNDER, ROOT_DOMAIN_ID, 0, ROOT_DOMAIN_ID)
    a1 = colony.add_domain(FOUNDER, ROOT_DOMAIN_ID, 0, a.id)
    return a, b, a1


class TestDomainInheritance:
    """Tests for validate_domain_inheritance."""

    def test_same_domain_always_valid(self, permissions, tree):
        """Test that a domain reaches itself whatever the index."""
        a, _, _ = tree
        assert permissions.validate_domain_inheritance(a.id, 0, a.id)
        assert permissions.validate_domain_inheritance(a.id, 99, a.id)

    def test_direct_children(self, permissions, tree):
        """Test that children are reached by their creation index."""
        a, b, _ = tree
        assert permissions.validate_domain_inheritance(ROOT_DOMAIN_ID, 0, a.id)
        assert permissions.validate_domain_inheritance(ROOT_DOMAIN_ID, 1, b.id)
        assert not permissions.validate_domain_inheritance(ROOT_DOMAIN_ID, 0, b.id)

    def test_grandchild_reached_from_root(self, permissions, tree):
        """Test that descendants at any depth are indexed from every ancestor."""
        a, _, a1 = tree
        assert permissions.validate_domain_inheritance(ROOT_DOMAIN_ID, 2, a1.id)
        assert permissions.validate_domain_inheritance(a.id, 0, a1.id)

    def test_sibling_not_reachable(self, permissions, tree):
        """Test that a domain does not reach its sibling's children."""
        _, b, a1 = tree
        assert not permissions.validate_domain_inheritance(b.id, 0, a1.id)

    def test_child_does_not_reach_parent(self, permissions, tree):
        """Test that inheritance only flows downward."""
        a, _, _ = tree
        assert not permissions.validate_domain_inheritance(a.id, 0, ROOT_DOMAIN_ID)

    def test_index_out_of_range(self, permissions, tree):
        """Test that an index past the descendant list is simply invalid."""
        a, _, _ = tree
        assert not permissions.validate_domain_inheritance(ROOT_DOMAIN_ID, 3, a.id)

    def test_unknown_domains(self, permissions):
        """Test that unknown domains raise rather than return False."""
        with pytest.raises(NoSuchDomainError):
            permissions.validate_domain_inheritance(ROOT_DOMAIN_ID, 0, 42)
        with pytest.raises(NoSuchDomainError):
            permissions.validate_domain_inheritance(0, 0, ROOT_DOMAIN_ID)


class TestDomainAuthority:
    """Tests for require_domain_authority and has_inherited_role."""

    def test_root_role_reaches_child(self, permissions, tree):
        """Test that a root role covers a child reached by index."""
        a, _, _ = tree
        permissions.require_domain_authority(ADMIN, ROOT_DOMAIN_ID, 0, a.id, ColonyRole.ADMINISTRATION)
        assert permissions.has_inherited_role(ADMIN, ROOT_DOMAIN_ID, ColonyRole.ADMINISTRATION, 0, a.id)

    def test_missing_role(self, permissions):
        """Test that lacking the role raises PermissionDeniedError."""
        with pytest.raises(PermissionDeniedError, match=USER):
            permissions.require_domain_authority(
                USER, ROOT_DOMAIN_ID, 0, ROOT_DOMAIN_ID, ColonyRole.FUNDING
            )

    def test_bad_index_reported_before_role(self, permissions, tree):
        """Test that a bad child index is reported even when the role is missing."""
        a, _, _ = tree
        with pytest.raises(BadChildSkillError):
            permissions.require_domain_authority(USER, ROOT_DOMAIN_ID, 1, a.id, ColonyRole.FUNDING)

    def test_child_role_does_not_reach_parent(self, ctx, permissions, tree):
        """Test that a role held in a child gives nothing in the parent."""
        a, _, _ = tree
        ctx.roles.set_user_role(FOUNDER, USER, a.id, ColonyRole.FUNDING, True)

        assert not permissions.has_inherited_role(
            USER, ROOT_DOMAIN_ID, ColonyRole.FUNDING, 0, ROOT_DOMAIN_ID
        )
        assert permissions.has_inherited_role(USER, a.id, ColonyRole.FUNDING, 0, a.id)
