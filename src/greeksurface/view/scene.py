"""
Scene Ownership Tree
====================
Every attached renderable is a node owned by exactly one group of one
SceneGraph. Disposal walks the tree once; a node is released at most once,
whatever path reaches it (group rebuild or full unmount).

Release failures are logged as ResourceDisposalFailure and swallowed: a
platform error must never block unmount or leave later nodes undisposed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

from greeksurface.controller.scene_builder import SceneItem
from greeksurface.model.errors import LifecycleError, ResourceDisposalFailure

if TYPE_CHECKING:
    from greeksurface.view.viewport import RenderSurface

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class SceneNode:
    name: str
    item: Optional[SceneItem] = None
    handle: Any = None
    children: List["SceneNode"] = field(default_factory=list)
    disposed: bool = False

    def walk(self) -> Iterator["SceneNode"]:
        """Post-order: children before their parent."""
        for child in self.children:
            yield from child.walk()
        yield self


class SceneGraph:
    """
    root
     |- static   (lights, box, floor grid, axes; lives for the whole mount)
     |- content  (surface, wireframe, ticks, labels; replaced on every rebuild)
    """

    def __init__(self, surface: "RenderSurface") -> None:
        self._surface = surface
        self.root = SceneNode("scene")
        self._groups: Dict[str, SceneNode] = {}
        self._closed = False
        for name in ("static", "content"):
            self._groups[name] = SceneNode(name)
            self.root.children.append(self._groups[name])

    # ------------------------------------------------------------------------------
    # Attach
    # ------------------------------------------------------------------------------

    def attach(self, group: str, item: SceneItem) -> SceneNode:
        if self._closed:
            raise LifecycleError(f"Cannot attach '{item.name}': scene already disposed.")
        node = SceneNode(item.name, item=item)
        node.handle = self._surface.attach(item)
        self._groups[group].children.append(node)
        return node

    def attach_all(self, group: str, items: List[SceneItem]) -> List[SceneNode]:
        return [self.attach(group, item) for item in items]

    # ------------------------------------------------------------------------------
    # Dispose
    # ------------------------------------------------------------------------------

    def clear_group(self, group: str) -> int:
        """Disposes every node of `group`; the group itself stays usable."""
        parent = self._groups[group]
        released = 0
        for child in parent.children:
            for node in child.walk():
                released += self._dispose(node)
        parent.children.clear()
        return released

    def dispose_all(self) -> int:
        """Disposes the whole tree. Further attaches raise LifecycleError."""
        if self._closed:
            return 0
        released = sum(self.clear_group(name) for name in self._groups)
        self._closed = True
        logger.debug(f"Scene disposed, {released} node(s) released.")
        return released

    def _dispose(self, node: SceneNode) -> int:
        if node.disposed:
            return 0
        node.disposed = True
        if node.item is None:
            return 0
        try:
            self._surface.detach(node.handle)
        except Exception as e:
            failure = ResourceDisposalFailure(node.name, e)
            logger.exception(str(failure))
        finally:
            node.item.release()
            node.handle = None
        return 1

    # ------------------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------------------

    def nodes(self, group: Optional[str] = None) -> List[SceneNode]:
        roots = [self._groups[group]] if group else list(self._groups.values())
        return [
            node
            for parent in roots
            for child in parent.children
            for node in child.walk()
            if node.item is not None and not node.disposed
        ]

    @property
    def live_count(self) -> int:
        return len(self.nodes())

    def names(self, group: str) -> List[str]:
        return [node.name for node in self.nodes(group)]
