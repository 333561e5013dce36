import pytest

from starcalc.beatmap import BeatmapDifficulty
from starcalc.mod import (
    LegacyMod,
    ModCustomSpeed,
    ModDifficultyAdjust,
    ModDoubleTime,
    ModEasy,
    ModFlashlight,
    ModHardRock,
    ModHidden,
    ModMirror,
    ModNightCore,
    ModNoFail,
    ModPerfect,
    ModRateAdjust,
    ModReallyEasy,
    ModSet,
    ModSmallCircle,
    ModTraceable,
    ar_to_ms,
    droid_od_to_ms,
    ms_to_ar,
)


def test_legacy_mod_parse():
    assert LegacyMod.parse('') == 0
    assert LegacyMod.parse('HDDT') == LegacyMod.hidden | LegacyMod.double_time
    expected = LegacyMod.precise | LegacyMod.small_circle
    assert LegacyMod.parse('prsc') == expected

    with pytest.raises(ValueError):
        LegacyMod.parse('HDD')

    with pytest.raises(ValueError):
        LegacyMod.parse('ZZ')


def test_legacy_mod_split():
    mask = LegacyMod.hidden | LegacyMod.double_time | LegacyMod.traceable
    assert LegacyMod.split(mask) == [
        LegacyMod.hidden,
        LegacyMod.double_time,
        LegacyMod.traceable,
    ]


def test_compatibility_is_symmetric():
    assert not ModNoFail().is_compatible_with(ModPerfect())
    assert not ModPerfect().is_compatible_with(ModNoFail())
    assert not ModHidden().is_compatible_with(ModTraceable())
    assert not ModTraceable().is_compatible_with(ModHidden())
    assert ModHidden().is_compatible_with(ModDoubleTime())


@pytest.mark.parametrize('first,second', [
    (ModNoFail(), ModPerfect()),
    (ModPerfect(), ModNoFail()),
    (ModHardRock(), ModEasy()),
    (ModHardRock(), ModMirror()),
    (ModDoubleTime(), ModNightCore()),
    (ModHidden(), ModTraceable()),
])
def test_later_incompatible_mod_wins(first, second):
    mods = ModSet([first, second])
    assert list(mods) == [second]
    assert first not in mods


def test_same_type_is_replaced():
    mods = ModSet([ModCustomSpeed(1.2), ModHidden(), ModCustomSpeed(1.3)])
    assert len(mods) == 2
    assert mods.of_type(ModCustomSpeed) == ModCustomSpeed(1.3)
    assert ModCustomSpeed(1.2) not in mods
    assert ModCustomSpeed(1.3) in mods


def test_contains_type():
    mods = ModSet([ModDoubleTime()])
    assert ModRateAdjust in mods
    assert ModDoubleTime in mods
    assert ModNightCore not in mods


def test_discard():
    mods = ModSet([ModDoubleTime(), ModCustomSpeed(1.1), ModHidden()])
    mods.discard(ModRateAdjust)
    assert list(mods) == [ModHidden()]

    mods.discard(ModHidden())
    assert not mods


def test_equality():
    assert ModFlashlight() == ModFlashlight(0.12)
    assert ModFlashlight(0.24) != ModFlashlight()
    assert ModSet([ModHidden(), ModDoubleTime()]) == ModSet([
        ModDoubleTime(),
        ModHidden(),
    ])
    assert len({ModHidden(), ModHidden()}) == 1


def test_clock_rate():
    assert ModSet().clock_rate == 1
    assert ModSet([ModDoubleTime()]).clock_rate == 1.5
    assert ModSet([
        ModDoubleTime(),
        ModCustomSpeed(1.2),
    ]).clock_rate == pytest.approx(1.8)


def apply(mods, **kwargs):
    difficulty = BeatmapDifficulty(**kwargs)
    mods = ModSet(mods)
    for mod in mods.in_application_order():
        mod.apply_to_difficulty(difficulty, mods)
    return difficulty


def test_hard_rock():
    difficulty = apply([ModHardRock()], cs=4, ar=9, od=8, hp=5)
    assert difficulty.cs == pytest.approx(5.2)
    assert difficulty.ar == 10
    assert difficulty.od == 10
    assert difficulty.hp == pytest.approx(7)


def test_easy():
    difficulty = apply([ModEasy()], cs=4, ar=9, od=8, hp=6)
    assert (difficulty.cs, difficulty.ar, difficulty.od, difficulty.hp) == (
        2, 4.5, 4, 3,
    )


def test_really_easy():
    difficulty = apply([ModReallyEasy()], cs=4, ar=9, od=8, hp=6)
    assert difficulty.ar == 8.5
    assert difficulty.od == 4
    assert difficulty.hp == 3

    with_easy = apply([ModEasy(), ModReallyEasy()], cs=4, ar=9, od=8, hp=6)
    assert with_easy.ar == 8
    assert with_easy.od == 2

    with_rate = apply([ModDoubleTime(), ModReallyEasy()], ar=9)
    assert with_rate.ar == 8


def test_small_circle():
    assert apply([ModSmallCircle()], cs=4).cs == 8


def test_difficulty_adjust_is_applied_last():
    difficulty = apply(
        [ModDifficultyAdjust(cs=3, ar=None), ModHardRock()],
        cs=4,
        ar=9,
    )
    assert difficulty.cs == 3
    assert difficulty.ar == 10


def test_ar_to_ms():
    assert ar_to_ms(5) == 1200
    assert ar_to_ms(10) == 450
    assert ar_to_ms(0) == 1800
    assert ms_to_ar(ar_to_ms(9.3)) == pytest.approx(9.3)
    assert ms_to_ar(ar_to_ms(3)) == pytest.approx(3)


def test_droid_hit_windows():
    assert droid_od_to_ms(5).hit_300 == 75
    assert droid_od_to_ms(10).hit_300 == 50
    assert droid_od_to_ms(5, precise=True).hit_300 == 55
    assert droid_od_to_ms(10, precise=True) == (25, 80, 130)
