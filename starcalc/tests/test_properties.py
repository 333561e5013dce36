import math

from hypothesis import HealthCheck, given, settings
import pytest

from starcalc import PlayableBeatmap, Spinner
from starcalc.difficulty import (
    DroidDifficultyCalculator,
    create_difficulty_hit_objects,
)
from starcalc.difficulty.skills import Aim
from starcalc.game_mode import GameMode
from starcalc.strategies import beatmaps, storable_mod_sets


calculation_settings = settings(
    deadline=None,
    max_examples=25,
    report_multiple_bugs=False,
    suppress_health_check=[HealthCheck.too_slow],
)


@given(beatmaps(min_objects=1))
@calculation_settings
def test_last_timed_matches_aggregate(beatmap):
    calculator = DroidDifficultyCalculator()
    attributes = calculator.calculate(beatmap)
    timed = calculator.calculate_timed(beatmap)

    assert len(timed) == len(beatmap.hit_objects)
    times = [t.time for t in timed]
    assert times == sorted(times)

    last = timed[-1].attributes
    assert last.max_combo == attributes.max_combo
    assert last.star_rating == pytest.approx(attributes.star_rating)
    assert last.aim_difficulty == pytest.approx(attributes.aim_difficulty)
    assert last.tap_difficulty == pytest.approx(attributes.tap_difficulty)


@given(beatmaps(), storable_mod_sets())
@calculation_settings
def test_star_rating_is_finite(beatmap, mods):
    calculator = DroidDifficultyCalculator()
    attributes = calculator.calculate(beatmap, mods)

    assert attributes.star_rating >= 0
    assert math.isfinite(attributes.star_rating)
    assert attributes.max_combo == beatmap.max_combo
    assert attributes == calculator.calculate(beatmap, mods)


@given(beatmaps())
@calculation_settings
def test_spinners_are_never_stacked(beatmap):
    for mode in GameMode:
        playable = PlayableBeatmap(beatmap, mode)
        for ob in playable.hit_objects:
            if isinstance(ob, Spinner):
                assert ob.difficulty_stack_height == 0
                assert ob.gameplay_stack_height == 0


@given(beatmaps(min_objects=1))
@calculation_settings
def test_one_peak_per_section(beatmap):
    playable = PlayableBeatmap(beatmap, GameMode.droid)
    objects = create_difficulty_hit_objects(playable.hit_objects, 1)
    skill = Aim(playable.mods, with_sliders=True)
    for ob in objects:
        skill.process(ob)

    section_length = skill.section_length
    section_end = (
        math.ceil(objects[0].start_time / section_length) * section_length
    )
    expected = 1
    while objects[-1].start_time > section_end:
        expected += 1
        section_end += section_length

    assert len(skill.current_strain_peaks) == expected
    assert len(skill.object_strains) == len(objects)
    assert all(strain >= 0 for strain in skill.object_strains)
