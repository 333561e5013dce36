from .beatmap import (
    Beatmap,
    BeatmapDifficulty,
    Circle,
    HitObject,
    PlayableBeatmap,
    Slider,
    Spinner,
    TimingPoint,
)
from .cancellation import CalculationCancelled, CancellationToken
from .difficulty import DroidDifficultyCalculator
from .game_mode import GameMode
from .legacy import convert_legacy_mods, convert_mod_string, to_mod_string
from .mod import LegacyMod, Mod, ModSet
from .position import Position

__version__ = "0.1.0"


__all__ = [
    "Beatmap",
    "BeatmapDifficulty",
    "CalculationCancelled",
    "CancellationToken",
    "Circle",
    "DroidDifficultyCalculator",
    "GameMode",
    "HitObject",
    "LegacyMod",
    "Mod",
    "ModSet",
    "PlayableBeatmap",
    "Position",
    "Slider",
    "Spinner",
    "TimingPoint",
    "convert_legacy_mods",
    "convert_mod_string",
    "to_mod_string",
]
