from enum import IntEnum, unique


@unique
class GameMode(IntEnum):
    """The game modes a beatmap can be made playable for.

    Both play osu!standard beatmaps; they differ in how hit objects are
    scaled and stacked and in the hit windows used.
    """
    droid = 0
    standard = 1
