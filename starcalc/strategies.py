from hypothesis.strategies import (
    booleans,
    composite,
    floats as _floats,
    integers,
    just,
    lists,
    none,
    one_of,
    sampled_from,
)

from starcalc import (
    Beatmap,
    BeatmapDifficulty,
    Circle,
    Position,
    Slider,
    Spinner,
)
from starcalc.curve import Curve
from starcalc.legacy import legacy_storable_mods
from starcalc.mod import (
    ModCustomSpeed,
    ModDifficultyAdjust,
    ModFlashlight,
    ModSet,
)


def floats(*args, **kwargs):
    # nan and infinity are never valid beatmap values
    return _floats(*args, allow_nan=False, allow_infinity=False, **kwargs)


@composite
def positions(draw):
    return Position(
        x=draw(integers(0, Position.x_max)),
        y=draw(integers(0, Position.y_max)),
    )


@composite
def difficulties(draw):
    return BeatmapDifficulty(
        cs=draw(floats(2, 7)),
        ar=draw(floats(4, 10)),
        od=draw(floats(4, 10)),
        hp=draw(floats(2, 8)),
        slider_multiplier=draw(sampled_from([1.0, 1.4, 1.8])),
        slider_tick_rate=draw(sampled_from([1, 2])),
    )


@composite
def sliders(draw, start_time, difficulty):
    position = draw(positions())
    pixel_length = draw(floats(20, 200))
    kind = draw(sampled_from(['L', 'P', 'B']))
    if kind == 'L':
        points = [position, position + Position(pixel_length, 0)]
    else:
        points = [
            position,
            position + Position(pixel_length / 2, pixel_length / 2),
            position + Position(pixel_length, 0),
        ]

    return Slider(
        start_time,
        position,
        Curve.from_kind_and_points(kind, points, pixel_length),
        span_count=draw(integers(1, 3)),
        pixel_length=pixel_length,
        ms_per_beat=draw(floats(200, 1000)),
        slider_multiplier=difficulty.slider_multiplier,
        tick_rate=difficulty.slider_tick_rate,
        velocity_multiplier=draw(sampled_from([0.5, 1.0, 1.5])),
        new_combo=draw(booleans()),
    )


@composite
def beatmaps(draw, *, min_objects=0, max_objects=30):
    """Beatmaps whose hit objects never overlap in time.
    """
    difficulty = draw(difficulties())
    kinds = draw(lists(
        sampled_from(['circle', 'circle', 'slider', 'spinner']),
        min_size=min_objects,
        max_size=max_objects,
    ))

    time = draw(floats(0, 2000))
    hit_objects = []
    for kind in kinds:
        time += draw(floats(20, 1000))
        if kind == 'circle':
            hit_objects.append(
                Circle(time, draw(positions()), draw(booleans())),
            )
        elif kind == 'slider':
            slider = draw(sliders(time, difficulty))
            hit_objects.append(slider)
            time = slider.end_time
        else:
            end_time = time + draw(floats(500, 3000))
            hit_objects.append(Spinner(time, end_time))
            time = end_time

    return Beatmap(
        difficulty,
        hit_objects,
        format_version=draw(sampled_from([5, 14])),
        stack_leniency=draw(floats(0.2, 1)),
    )


def custom_speeds():
    # rates with at most two decimals survive the legacy encoding exactly
    return sampled_from([k / 20 for k in range(10, 41)]).map(ModCustomSpeed)


@composite
def difficulty_adjusts(draw):
    values = sampled_from([k / 2 for k in range(21)])
    cs, ar, od, hp = draw(
        lists(none() | values, min_size=4, max_size=4).filter(
            lambda vs: any(v is not None for v in vs),
        ),
    )
    return ModDifficultyAdjust(cs=cs, ar=ar, od=od, hp=hp)


@composite
def storable_mod_sets(draw):
    """Mod sets which can be written as a legacy mod string.
    """
    mods = ModSet(
        mod_type()
        for mod_type in draw(lists(sampled_from(sorted(
            legacy_storable_mods.values(),
            key=lambda mod_type: mod_type.acronym,
        ))))
    )

    extras = draw(lists(one_of(
        custom_speeds(),
        difficulty_adjusts(),
        sampled_from([0.12, 0.24, 0.6]).map(ModFlashlight),
        just(None),
    ), max_size=3))
    for extra in extras:
        if extra is not None:
            mods.add(extra)

    return mods
