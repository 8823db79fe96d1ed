"""Unit tests for services.principal_tree.PrincipalTree."""

from __future__ import annotations

import pytest
from bson import ObjectId

from errors import InvalidStateError
from services.principal_tree import PrincipalTree
from shared.datetime_utils import utcnow


def _ids(docs):
    return {d.id for d in docs}


class TestChildren:
    def test_direct_children_only(self, tree, family):
        children = tree.children_of(family["root"].id)
        assert _ids(children) == {family["child"].id}

    def test_leaf_has_no_children(self, tree, family):
        assert tree.children_of(family["grandchild"].id) == []


class TestSubtree:
    def test_transitive_descendants_exclude_root(self, tree, family):
        subtree = tree.subtree_of(family["root"].id)
        assert _ids(subtree) == {family["child"].id, family["grandchild"].id}

    def test_unrelated_root_not_included(self, tree, family):
        assert family["other"].id not in _ids(tree.subtree_of(family["root"].id))

    def test_unknown_id_is_empty(self, tree, family):
        assert tree.subtree_of(ObjectId()) == []

    def test_includes_revoked_members(self, tree, principal_repo, family):
        principal_repo.mark_revoked([family["child"].id], utcnow())
        assert _ids(tree.subtree_of(family["root"].id)) == {
            family["child"].id,
            family["grandchild"].id,
        }

    def test_cycle_does_not_loop(self, tree, mock_db, family):
        mock_db.principals.update_one(
            {"_id": family["root"].id}, {"$set": {"created_by": family["grandchild"].id}}
        )
        subtree = tree.subtree_of(family["root"].id)
        assert _ids(subtree) == {family["child"].id, family["grandchild"].id}

    def test_too_large_raises(self, principal_repo, principals, family):
        principals.create("sibling", "sib@example.com", created_by=str(family["root"].id))
        small = PrincipalTree(principal_repo, max_size=2)
        with pytest.raises(InvalidStateError):
            small.subtree_of(family["root"].id)

    def test_exactly_at_limit_ok(self, principal_repo, family):
        small = PrincipalTree(principal_repo, max_size=2)
        assert len(small.subtree_of(family["root"].id)) == 2


class TestAncestors:
    def test_nearest_first(self, tree, family):
        assert tree.ancestors_of(family["grandchild"].id) == [
            family["child"].id,
            family["root"].id,
        ]

    def test_root_has_none(self, tree, family):
        assert tree.ancestors_of(family["root"].id) == []

    def test_cycle_guarded(self, tree, mock_db, family):
        mock_db.principals.update_one(
            {"_id": family["root"].id}, {"$set": {"created_by": family["grandchild"].id}}
        )
        assert tree.ancestors_of(family["child"].id) == [
            family["root"].id,
            family["grandchild"].id,
        ]


class TestIsAncestorOf:
    def test_direct_parent(self, tree, family):
        assert tree.is_ancestor_of(family["root"].id, family["child"].id) is True

    def test_transitive(self, tree, family):
        assert tree.is_ancestor_of(family["root"].id, family["grandchild"].id) is True

    def test_not_reflexive(self, tree, family):
        assert tree.is_ancestor_of(family["child"].id, family["child"].id) is False

    def test_descendant_is_not_ancestor(self, tree, family):
        assert tree.is_ancestor_of(family["grandchild"].id, family["root"].id) is False

    def test_unrelated(self, tree, family):
        assert tree.is_ancestor_of(family["other"].id, family["child"].id) is False
