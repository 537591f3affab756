"""API route modules"""

from . import (
    health,
    camera,
    model,
    tracking,
    stream,
)

__all__ = [
    "health",
    "camera",
    "model",
    "tracking",
    "stream",
]
