"""Business logic services.

Only the pure calculators are re-exported here; stateful services are
imported from their modules so models can use the calculators freely.
"""

from app.services.level_curve import LevelCurve
from app.services.xp_calculator import XPCalculator

__all__ = [
    "LevelCurve",
    "XPCalculator",
]
