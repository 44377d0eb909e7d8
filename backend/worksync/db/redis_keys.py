"""
Redis Key Prefix Strategy (Single DB + Key Prefix Pattern)

All worksync keys and channels live in db=0 and are namespaced by prefix.

Key format:
    {prefix}:{entity_id}

Examples:
    worksync:presence:workspace:3f1c2a9e-...
    worksync:workspace:changes:3f1c2a9e-...
"""

from enum import Enum


class RedisKeyPrefix(str, Enum):
    """Redis key prefixes, all starting with 'worksync:'."""

    # === Presence ===
    PRESENCE_WORKSPACE = "worksync:presence:workspace"  # Users viewing a workspace (Hash)

    # === Change feed ===
    WORKSPACE_CHANGES = "worksync:workspace:changes"  # Pub/sub channel per workspace

    @classmethod
    def presence_key(cls, workspace_id: str) -> str:
        """Presence hash key for a workspace."""
        return f"{cls.PRESENCE_WORKSPACE.value}:{workspace_id}"

    @classmethod
    def changes_channel(cls, workspace_id: str) -> str:
        """Change feed channel for a workspace."""
        return f"{cls.WORKSPACE_CHANGES.value}:{workspace_id}"
