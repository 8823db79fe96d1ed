"""
Read-only traversal over the created_by forest.

Subtrees are walked breadth-first, one ``$in`` query per level, with a
visited set so a corrupted cycle can never loop. Every read takes an optional
session so a cascade sees the same snapshot it later writes against.
"""

from __future__ import annotations

from typing import Optional

from bson import ObjectId
from pymongo.client_session import ClientSession

from errors import InvalidStateError
from repositories.principal_repository import PrincipalRepository
from schemas.models.principal import PrincipalDoc
from shared.logging import get_logger

log = get_logger(__name__)


class PrincipalTree:
    def __init__(self, repository: PrincipalRepository, *, max_size: int = 10_000) -> None:
        self._repo = repository
        self.max_size = max_size

    def children_of(
        self, principal_id: ObjectId, session: Optional[ClientSession] = None
    ) -> list[PrincipalDoc]:
        return self._repo.find_children([principal_id], session=session)

    def subtree_of(
        self, principal_id: ObjectId, session: Optional[ClientSession] = None
    ) -> list[PrincipalDoc]:
        """All transitive descendants of *principal_id* (the root itself excluded).

        Raises InvalidStateError when the subtree exceeds ``max_size``.
        """
        visited: set[ObjectId] = {principal_id}
        result: list[PrincipalDoc] = []
        frontier = [principal_id]

        while frontier:
            next_frontier: list[ObjectId] = []
            for child in self._repo.find_children(frontier, session=session):
                if child.id in visited:
                    log.warning(
                        "principal_tree_cycle_detected",
                        principal_id=str(child.id),
                        root_id=str(principal_id),
                    )
                    continue
                visited.add(child.id)
                result.append(child)
                next_frontier.append(child.id)
            if len(result) > self.max_size:
                raise InvalidStateError(
                    "cascade too large",
                    details={"root_id": str(principal_id), "limit": self.max_size},
                )
            frontier = next_frontier

        return result

    def ancestors_of(
        self, principal_id: ObjectId, session: Optional[ClientSession] = None
    ) -> list[ObjectId]:
        """created_by chain above *principal_id*, nearest first."""
        ancestors: list[ObjectId] = []
        seen: set[ObjectId] = {principal_id}
        current = self._repo.find_by_id(principal_id, session=session)

        while current is not None and current.created_by is not None:
            parent_id = current.created_by
            if parent_id in seen:
                log.warning("principal_tree_cycle_detected", principal_id=str(parent_id))
                break
            seen.add(parent_id)
            ancestors.append(parent_id)
            current = self._repo.find_by_id(parent_id, session=session)

        return ancestors

    def is_ancestor_of(
        self,
        ancestor_id: ObjectId,
        descendant_id: ObjectId,
        session: Optional[ClientSession] = None,
    ) -> bool:
        """True when *ancestor_id* created *descendant_id* directly or transitively."""
        if ancestor_id == descendant_id:
            return False
        return ancestor_id in self.ancestors_of(descendant_id, session=session)
