from .attributes import DroidDifficultyAttributes, TimedDifficultyAttributes
from .calculator import (
    VERSION,
    DifficultyCalculator,
    DroidDifficultyCalculator,
    ProgressiveCalculationBeatmap,
)
from .hit_object import DifficultyHitObject, create_difficulty_hit_objects
from .skills import Aim, Flashlight, Skill, StrainSkill, Tap


__all__ = [
    "Aim",
    "DifficultyCalculator",
    "DifficultyHitObject",
    "DroidDifficultyAttributes",
    "DroidDifficultyCalculator",
    "Flashlight",
    "ProgressiveCalculationBeatmap",
    "Skill",
    "StrainSkill",
    "Tap",
    "TimedDifficultyAttributes",
    "VERSION",
    "create_difficulty_hit_objects",
]
