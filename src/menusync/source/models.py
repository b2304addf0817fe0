"""Data models for the source menu definition."""

from dataclasses import dataclass, field

from menusync.constants import PATH_SEPARATOR

MenuPath = tuple[str, ...]


def format_path(path: MenuPath | None) -> str:
    """Render a menu path for logs and messages."""
    if path is None:
        return "<none>"
    if not path:
        return "<root>"
    return PATH_SEPARATOR.join(path)


@dataclass(frozen=True)
class SourceNode:
    """A page or control in the authoritative menu definition.

    The path is the natural key. Sibling names must be unique at every level,
    and the root sits at the empty path.
    """

    path: MenuPath
    display_name: str
    aux_info: str | None = None  # Install target name or similar provenance
    children: tuple["SourceNode", ...] = field(default_factory=tuple)

    @property
    def name(self) -> str:
        """Last path segment (empty for the root)."""
        return self.path[-1] if self.path else ""

    def walk(self):
        """Yield this node and all descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()
