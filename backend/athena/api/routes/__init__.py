"""API routes package."""

from athena.api.routes import conversations, tutor

__all__ = [
    "conversations",
    "tutor",
]
