from collections import namedtuple


class DroidDifficultyAttributes(namedtuple(
        'DroidDifficultyAttributes',
        [
            'mods',
            'star_rating',
            'max_combo',
            'aim_difficulty',
            'tap_difficulty',
            'flashlight_difficulty',
            'slider_factor',
            'flashlight_slider_factor',
            'aim_difficult_strain_count',
            'tap_difficult_strain_count',
            'approach_rate',
            'overall_difficulty',
            'hit_circle_count',
            'slider_count',
            'spinner_count',
        ])):
    """The difficulty of an osu!droid beatmap.

    Parameters
    ----------
    mods : ModSet
        The mods the difficulty was calculated with.
    star_rating : float
        The combined difficulty.
    max_combo : int
        The highest achievable combo.
    aim_difficulty, tap_difficulty, flashlight_difficulty : float
        The rating of each skill.
    slider_factor : float
        The ratio of the aim rating without sliders to the aim rating with
        sliders.
    flashlight_slider_factor : float
        The same ratio for flashlight.
    aim_difficult_strain_count, tap_difficult_strain_count : float
        The number of objects weighted by how hard they are relative to the
        hardest part of the map.
    approach_rate, overall_difficulty : float
        The rate adjusted approach rate and overall difficulty.
    hit_circle_count, slider_count, spinner_count : int
        The number of each kind of object.
    """
    @classmethod
    def empty(cls, mods):
        """Attributes describing a beatmap with no objects.
        """
        return cls(
            mods=mods,
            star_rating=0.0,
            max_combo=0,
            aim_difficulty=0.0,
            tap_difficulty=0.0,
            flashlight_difficulty=0.0,
            slider_factor=1.0,
            flashlight_slider_factor=1.0,
            aim_difficult_strain_count=0.0,
            tap_difficult_strain_count=0.0,
            approach_rate=0.0,
            overall_difficulty=0.0,
            hit_circle_count=0,
            slider_count=0,
            spinner_count=0,
        )


TimedDifficultyAttributes = namedtuple(
    'TimedDifficultyAttributes',
    'time attributes',
)
TimedDifficultyAttributes.__doc__ = """The difficulty of a beatmap up to a
point in time.

Parameters
----------
time : float
    The end time in milliseconds of the last object the attributes cover.
attributes : DroidDifficultyAttributes
    The difficulty of the beatmap up to ``time``.
"""
