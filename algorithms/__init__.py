from .math_tools import MathTools
from .weight_converter import WeightConverter
from .streaks import StreakCalculator
from .windows import SessionWindows, WindowTools
from .strength_progression import StrengthProgressionCalculator
from .goal_progress import GoalProgressCalculator

__all__ = [
    "MathTools",
    "WeightConverter",
    "StreakCalculator",
    "SessionWindows",
    "WindowTools",
    "StrengthProgressionCalculator",
    "GoalProgressCalculator",
]
