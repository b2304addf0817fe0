"""Identifier minting and collision repair.

Hosts can clone a node together with its identifier (an editor's duplicate
or copy/paste). repair() restores one identifier per node after the fact.
"""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Collection

from menusync.graph.models import GeneratedNode

logger = logging.getLogger(__name__)


@dataclass
class IdentityCollision:
    """Nodes sharing one identifier (or lacking one).

    Not an error: collisions are routed to IdentityStore.repair().
    """

    identifier: str
    nodes: list[GeneratedNode] = field(default_factory=list)


def is_well_formed(identifier: str | None) -> bool:
    """True for a non-empty identifier; anything else needs (re)minting."""
    return bool(identifier and identifier.strip())


class IdentityStore:
    """Mints and validates node identifiers."""

    def mint(self, taken: Collection[str] = ()) -> str:
        """Return a new 128-bit hex identifier not present in taken."""
        while True:
            candidate = uuid.uuid4().hex
            if candidate not in taken:
                return candidate

    def find_collisions(self, root: GeneratedNode | None) -> list[IdentityCollision]:
        """Group nodes that share an identifier, plus nodes with none.

        The first node of each group (pre-order) is the one repair() keeps;
        empty identifiers never have a keeper.
        """
        if root is None:
            return []

        groups: dict[str, list[GeneratedNode]] = defaultdict(list)
        for node in root.walk():
            key = node.identifier if is_well_formed(node.identifier) else ""
            groups[key].append(node)

        collisions = []
        for identifier, nodes in groups.items():
            if identifier == "" or len(nodes) > 1:
                collisions.append(IdentityCollision(identifier=identifier, nodes=nodes))
        return collisions

    def repair(self, root: GeneratedNode | None) -> list[tuple[str, str]]:
        """Re-mint identifiers so every node has a unique one.

        Mutates identifier fields in place. Idempotent: on a consistent graph
        nothing changes and the result is empty.

        Returns:
            List of (old_identifier, new_identifier) rewrites.
        """
        collisions = self.find_collisions(root)
        if not collisions:
            return []

        assert root is not None
        taken = {node.identifier for node in root.walk() if is_well_formed(node.identifier)}
        rewrites = []
        for collision in collisions:
            losers = collision.nodes if collision.identifier == "" else collision.nodes[1:]
            for node in losers:
                new_identifier = self.mint(taken)
                taken.add(new_identifier)
                logger.info(
                    f"Re-minted identifier for '{node.display_name}': "
                    f"{node.identifier or '<empty>'} -> {new_identifier}"
                )
                rewrites.append((node.identifier, new_identifier))
                node.identifier = new_identifier
        return rewrites
