import os

from starcalc import Beatmap


def example_beatmap(name):
    """Load one of the example beatmaps.

    Parameters
    ----------
    name : str
        The name of the example file to open.
    """
    return Beatmap.from_path(os.path.join(os.path.dirname(__file__), name))


def example_song():
    """Load the Example Song beatmap.

    Returns
    -------
    example_song : Beatmap
        The beatmap object.
    """
    return example_beatmap(
        'Example Artist - Example Song (mapper) [Normal].osu',
    )
