"""Structured addressing of tree nodes.

A `NodeKey` names one node of the tree by its full ancestry. UIs that need a
flat string (list item keys, DOM ids) use `token`, which `NodeKey.parse`
turns back into the same key.
"""

from dataclasses import dataclass
from enum import Enum

TOKEN_SEPARATOR = "/"
DASHBOARD_PREFIX = "/dashboard"


class NodeKind(str, Enum):
    workspace = "workspace"
    folder = "folder"
    file = "file"


@dataclass(frozen=True)
class NodeKey:
    """Key of a workspace, folder or file in the tree."""

    workspace_id: str
    folder_id: str | None = None
    file_id: str | None = None

    def __post_init__(self):
        if not self.workspace_id:
            raise ValueError("workspace_id is required")
        if self.file_id is not None and self.folder_id is None:
            raise ValueError("file_id requires folder_id")
        for part in self.parts:
            if not part or TOKEN_SEPARATOR in part:
                raise ValueError(f"Invalid key part: {part!r}")

    @classmethod
    def for_folder(cls, workspace_id: str, folder_id: str) -> "NodeKey":
        return cls(workspace_id, folder_id)

    @classmethod
    def for_file(cls, workspace_id: str, folder_id: str, file_id: str) -> "NodeKey":
        return cls(workspace_id, folder_id, file_id)

    @property
    def parts(self) -> tuple[str, ...]:
        return tuple(p for p in (self.workspace_id, self.folder_id, self.file_id) if p is not None)

    @property
    def kind(self) -> NodeKind:
        if self.file_id is not None:
            return NodeKind.file
        if self.folder_id is not None:
            return NodeKind.folder
        return NodeKind.workspace

    @property
    def parent(self) -> "NodeKey | None":
        if self.file_id is not None:
            return NodeKey(self.workspace_id, self.folder_id)
        if self.folder_id is not None:
            return NodeKey(self.workspace_id)
        return None

    @property
    def token(self) -> str:
        """Flat string form, e.g. "w1/f1/file1"."""
        return TOKEN_SEPARATOR.join(self.parts)

    @property
    def path(self) -> str:
        """Dashboard navigation path of the node."""
        return f"{DASHBOARD_PREFIX}/{self.token}"

    @classmethod
    def parse(cls, token: str) -> "NodeKey":
        """Inverse of `token`.

        Raises:
            ValueError: If the token has no parts, more than three, or an empty one
        """
        parts = token.split(TOKEN_SEPARATOR)
        if not 1 <= len(parts) <= 3 or any(not p for p in parts):
            raise ValueError(f"Invalid node key token: {token!r}")
        return cls(*parts)

    @classmethod
    def from_path(cls, path: str) -> "NodeKey":
        """Parse a dashboard path back into a key."""
        prefix = DASHBOARD_PREFIX + "/"
        if not path.startswith(prefix):
            raise ValueError(f"Not a dashboard path: {path!r}")
        return cls.parse(path[len(prefix) :].rstrip(TOKEN_SEPARATOR))

    def __str__(self) -> str:
        return self.token
