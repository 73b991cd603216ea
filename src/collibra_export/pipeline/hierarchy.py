"""
Community hierarchy resolution.

Pure functions over a flat community listing: child index construction,
descendant resolution with a cycle guard, exact-name lookup and a preview
of the tree that an export would cover.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from ..domain.models import Community
from ..types import HierarchyCycleError

logger = logging.getLogger(__name__)


def build_child_index(communities: Iterable[Community]) -> dict[str, list[Community]]:
    """
    Map each parent id to its direct children, keeping listing order.

    Root communities (no parent) are not keys of the index.
    """
    index: dict[str, list[Community]] = defaultdict(list)
    for community in communities:
        if community.parent_id:
            index[community.parent_id].append(community)
    return dict(index)


def resolve_descendants(community_id: str, communities: Iterable[Community]) -> list[Community]:
    """
    Return every community below ``community_id``, each exactly once.

    Depth-first, parent before child, siblings in listing order.

    Raises:
        HierarchyCycleError: If a community is reached twice (cycle or duplicate id)
    """
    index = build_child_index(communities)
    return _descend(community_id, index)


def _descend(root_id: str, index: dict[str, list[Community]]) -> list[Community]:
    descendants: list[Community] = []
    visited = {root_id}
    # Reversed pushes keep siblings in listing order when popped
    stack = list(reversed(index.get(root_id, [])))

    while stack:
        community = stack.pop()
        if community.id in visited:
            raise HierarchyCycleError(community.id, community.name)
        visited.add(community.id)
        descendants.append(community)
        stack.extend(reversed(index.get(community.id, [])))

    return descendants


def find_community_by_name(name: str, communities: Iterable[Community]) -> Optional[Community]:
    """First community whose name equals ``name`` exactly (case-sensitive), else None."""
    for community in communities:
        if community.name == name:
            return community
    return None


def root_communities(communities: Iterable[Community]) -> list[Community]:
    """Communities without a parent, in listing order."""
    return [c for c in communities if not c.parent_id]


@dataclass(frozen=True)
class HierarchyNode:
    """A community and its depth below the previewed root (root is 0)."""
    community: Community
    depth: int


@dataclass(frozen=True)
class HierarchyPreview:
    """The scope an export of ``root`` would cover."""
    root: Community
    nodes: tuple[HierarchyNode, ...]

    @property
    def descendants(self) -> list[Community]:
        return [node.community for node in self.nodes[1:]]

    def lines(self, indent: str = "  ") -> list[str]:
        return [f"{indent * node.depth}{node.community.name}" for node in self.nodes]


def preview_hierarchy(root: Community, communities: Iterable[Community]) -> HierarchyPreview:
    """
    Resolve the subtree under ``root`` with depths, without exporting anything.

    Raises:
        HierarchyCycleError: If the subtree contains a cycle
    """
    communities = list(communities)
    index = build_child_index(communities)
    descendants = _descend(root.id, index)

    depth = {root.id: 0}
    nodes = [HierarchyNode(root, 0)]
    for community in descendants:
        level = depth[community.parent_id] + 1
        depth[community.id] = level
        nodes.append(HierarchyNode(community, level))

    logger.debug(f"Previewed '{root.name}': {len(descendants)} sub-communities")
    return HierarchyPreview(root=root, nodes=tuple(nodes))
