"""ID generation utilities.

Workspaces, folders and files are addressed by canonical UUID strings.
"""

import uuid


def generate_id() -> str:
    """Generate a canonical entity ID (UUID4, lowercase, hyphenated).

    Example: 3f1c2a9e-5b7d-4c1e-9a0b-2d6f8e4c1b7a
    """
    return str(uuid.uuid4())
