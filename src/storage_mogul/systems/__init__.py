"""
Driving systems for Storage Mogul.

The loop decides *when* the simulation advances; the manager decides
*what* happens when it does.
"""

from .loop import GameLoop

__all__ = [
    "GameLoop",
]
