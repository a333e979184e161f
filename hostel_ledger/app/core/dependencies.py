"""
Request dependencies for FastAPI.

The service sits behind the campus portal, which authenticates users and
forwards the acting principal in the `X-Actor` header. The value is only
recorded in the audit trail.
"""

from typing import Optional
from fastapi import Header


async def get_actor(x_actor: Optional[str] = Header(None, alias="X-Actor")) -> Optional[str]:
    """
    Acting principal for audit purposes.

    Returns:
        The trimmed header value, or None when absent or blank
    """
    if x_actor is None:
        return None
    return x_actor.strip() or None
