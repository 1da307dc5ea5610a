"""
Generic top-down copy of a three-level hierarchy.

Each level is described by a ``TreeLevel``: which kind of id to mint, which
source children to keep, and how to build the destination row from a source
node and the freshly allocated parent id. The copier writes every parent
before its children, so child rows always reference a parent that exists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.enums import EntityKind
from .hierarchy import HierarchyNode
from .identity import IdentityAllocator

# (source entity, new parent id or None for the root, new id) -> unsaved row
RowBuilder = Callable[[Any, Optional[str], str], Any]
KeepPredicate = Callable[[Any], bool]


# Business fields shared by live rows and their backlog snapshots
STORY_FIELDS = (
    "title", "description", "acceptance_criteria", "priority", "story_points",
    "assignee_id", "reporter_id", "epic_id", "release_id", "labels",
    "order_index", "estimated_hours",
)
TASK_FIELDS = (
    "title", "description", "status", "priority", "assignee_id", "reporter_id",
    "estimated_hours", "actual_hours", "order_index", "task_number", "due_date", "labels",
)
SUBTASK_FIELDS = (
    "title", "description", "assignee_id", "estimated_hours", "actual_hours",
    "order_index", "due_date", "bug_type", "severity", "category", "labels",
)
LIST_FIELDS = frozenset({"acceptance_criteria", "labels"})


def copy_attrs(source: Any, names: Sequence[str]) -> Dict[str, Any]:
    """Read ``names`` off ``source``; JSON lists are copied, never shared."""
    values = {}
    for name in names:
        value = getattr(source, name)
        if name in LIST_FIELDS:
            value = list(value or [])
        values[name] = value
    return values


def _keep_all(entity: Any) -> bool:
    return True


@dataclass
class TreeLevel:
    kind: EntityKind
    build: RowBuilder
    keep: KeepPredicate = _keep_all


@dataclass
class CopiedNode:
    source_id: str
    row: Any
    children: List["CopiedNode"] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.row.id

    def rows(self) -> List[Any]:
        out = [self.row]
        for child in self.children:
            out.extend(child.rows())
        return out


class TreeCopier:
    def __init__(self, db: AsyncSession, allocator: IdentityAllocator) -> None:
        self.db = db
        self.allocator = allocator
        # old id -> new id for the copy in progress
        self.id_map: Dict[str, str] = {}

    async def copy(self, root: HierarchyNode, levels: Sequence[TreeLevel]) -> CopiedNode:
        """Copy ``root`` and the kept part of its subtree.

        The root is always copied; ``keep`` applies from the second level down.
        A dropped node takes its whole subtree with it.
        """
        if not levels:
            raise ValueError("At least one tree level is required")

        self.id_map = {}
        return await self._copy_node(root, levels, 0, None)

    async def _copy_node(
        self,
        source: HierarchyNode,
        levels: Sequence[TreeLevel],
        depth: int,
        new_parent_id: Optional[str]
    ) -> CopiedNode:
        level = levels[depth]
        new_id = await self.allocator.next_id(level.kind)

        row = level.build(source.entity, new_parent_id, new_id)
        self.db.add(row)
        await self.db.flush()
        self.id_map[source.id] = new_id

        copied = CopiedNode(source_id=source.id, row=row)
        if depth + 1 >= len(levels):
            return copied

        child_level = levels[depth + 1]
        for child in source.children:
            if not child_level.keep(child.entity):
                continue
            copied.children.append(await self._copy_node(child, levels, depth + 1, new_id))

        return copied
