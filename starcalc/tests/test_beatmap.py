import pytest

import starcalc.example_data.beatmaps
from starcalc.beatmap import (
    Beatmap,
    BeatmapDifficulty,
    Circle,
    PlayableBeatmap,
    Slider,
    SliderHead,
    SliderRepeat,
    SliderTail,
    SliderTick,
    Spinner,
    circle_size_to_scale,
)
from starcalc.curve import Curve
from starcalc.game_mode import GameMode
from starcalc.mod import (
    ModDoubleTime,
    ModHardRock,
    ModHidden,
    ModMirror,
    ModPrecise,
)
from starcalc.position import Position


@pytest.fixture
def beatmap():
    return starcalc.example_data.beatmaps.example_song()


def assert_position_close(actual, expected):
    assert actual.x == pytest.approx(expected.x, abs=1e-4)
    assert actual.y == pytest.approx(expected.y, abs=1e-4)


def test_version(beatmap):
    assert beatmap.format_version == 14


def test_display_name(beatmap):
    assert beatmap.display_name == 'Example Artist - Example Song [Normal]'


def test_parse_section_general(beatmap):
    assert beatmap.stack_leniency == 0.7


def test_parse_section_difficulty(beatmap):
    difficulty = beatmap.difficulty
    assert difficulty.hp == 5
    assert difficulty.cs == 4
    assert difficulty.od == 8
    assert difficulty.ar == 9
    assert difficulty.slider_multiplier == 1.4
    assert difficulty.slider_tick_rate == 1


def test_parse_section_timing_points(beatmap):
    uninherited, inherited = beatmap.timing_points

    assert uninherited.offset == 1000
    assert uninherited.parent is None
    assert uninherited.beat_length == 500
    assert uninherited.velocity_multiplier == 1

    assert inherited.offset == 3000
    assert inherited.parent is uninherited
    assert inherited.beat_length == 500
    assert inherited.velocity_multiplier == 2


def test_parse_section_hit_objects(beatmap):
    assert [type(ob) for ob in beatmap.hit_objects] == [
        Circle,
        Circle,
        Slider,
        Slider,
        Spinner,
        Circle,
    ]
    first = beatmap.hit_objects[0]
    assert first.position == Position(100, 100)
    assert first.start_time == 1000
    assert first.new_combo


def test_max_combo(beatmap):
    assert beatmap.max_combo == 9


def test_slider(beatmap):
    slider = beatmap.hit_objects[2]
    assert slider.span_count == 1
    assert slider.repeat_count == 0
    assert slider.velocity == pytest.approx(0.28)
    assert slider.end_time == pytest.approx(2500)
    assert_position_close(slider.end_position, Position(440, 100))
    assert [type(ob) for ob in slider.nested_hit_objects] == [
        SliderHead,
        SliderTail,
    ]


def test_slider_with_repeat(beatmap):
    slider = beatmap.hit_objects[3]
    assert slider.span_count == 2
    assert slider.repeat_count == 1
    assert slider.velocity == pytest.approx(0.56)
    assert slider.end_time == pytest.approx(3000 + 200 / 0.56)
    # an even number of spans ends where the slider started
    assert slider.end_position == slider.position
    assert [type(ob) for ob in slider.nested_hit_objects] == [
        SliderHead,
        SliderRepeat,
        SliderTail,
    ]


def test_slider_ticks():
    slider = Slider(
        0,
        Position(0, 0),
        Curve.from_kind_and_points(
            'L',
            [Position(0, 0), Position(300, 0)],
            300,
        ),
        span_count=2,
        pixel_length=300,
        ms_per_beat=500,
        slider_multiplier=1,
        tick_rate=1,
    )
    # 100 pixels per beat: ticks at 100 and 200 on each span
    nested = slider.nested_hit_objects
    assert [type(ob) for ob in nested] == [
        SliderHead,
        SliderTick,
        SliderTick,
        SliderRepeat,
        SliderTick,
        SliderTick,
        SliderTail,
    ]
    assert [ob.start_time for ob in nested] == pytest.approx([
        0, 500, 1000, 1500, 2000, 2500, 3000,
    ])
    assert_position_close(nested[4].position, Position(200, 0))
    assert_position_close(nested[5].position, Position(100, 0))


def test_spinner(beatmap):
    spinner = beatmap.hit_objects[4]
    assert spinner.start_time == 4000
    assert spinner.end_time == 6000
    assert spinner.duration == 2000
    assert spinner.position == Position(256, 192)


def test_parse_missing_header():
    with pytest.raises(ValueError):
        Beatmap.parse('[General]\nMode: 0\n')


def test_parse_other_mode():
    with pytest.raises(ValueError):
        Beatmap.parse(
            'osu file format v14\n'
            '[General]\nMode: 3\n'
            '[Difficulty]\nHPDrainRate:5\nCircleSize:4\nOverallDifficulty:8\n'
            '[TimingPoints]\n0,500,4,2,0,50,1,0\n',
        )


def test_parse_no_timing_points():
    with pytest.raises(ValueError):
        Beatmap.parse(
            'osu file format v14\n'
            '[Difficulty]\nHPDrainRate:5\nCircleSize:4\nOverallDifficulty:8\n',
        )


def test_parse_bad_hit_object():
    with pytest.raises(ValueError):
        Beatmap.parse(
            'osu file format v14\n'
            '[Difficulty]\nHPDrainRate:5\nCircleSize:4\nOverallDifficulty:8\n'
            '[TimingPoints]\n0,500,4,2,0,50,1,0\n'
            '[HitObjects]\n100,100,abc,1,0\n',
        )


def test_parse_old_beatmap_uses_od_for_ar():
    beatmap = Beatmap.parse(
        'osu file format v3\n'
        '[Difficulty]\nHPDrainRate:5\nCircleSize:4\nOverallDifficulty:7\n'
        '[TimingPoints]\n0,500\n'
        '[HitObjects]\n100,100,1000,1,0\n',
    )
    assert beatmap.format_version == 3
    assert beatmap.difficulty.ar == 7
    assert len(beatmap.hit_objects) == 1


def test_apply_defaults():
    circle = Circle(1000, Position(100, 100))
    circle.apply_defaults(BeatmapDifficulty(cs=5, ar=9), GameMode.standard)

    assert circle.time_preempt == 600
    assert circle.time_fade_in == 400
    assert circle.stack_offset_multiplier == -6.4
    assert circle.difficulty_scale == pytest.approx(0.5 * 1.00041)
    assert circle.difficulty_radius == pytest.approx(32 * 1.00041)


def test_fade_in_short_preempt():
    circle = Circle(1000, Position(100, 100))
    circle.apply_defaults(BeatmapDifficulty(ar=11), GameMode.droid)

    assert circle.time_preempt == 300
    assert circle.time_fade_in == pytest.approx(400 * 300 / 450)


def test_droid_objects_are_bigger():
    droid = circle_size_to_scale(4, GameMode.droid)
    standard = circle_size_to_scale(4, GameMode.standard)
    assert droid > standard
    assert circle_size_to_scale(8, GameMode.droid) < droid


def test_stacked_position_cache_invalidation():
    circle = Circle(0, Position(100, 100))
    circle.apply_defaults(BeatmapDifficulty(cs=5), GameMode.standard)
    scale = circle.difficulty_scale

    assert circle.difficulty_stacked_position == Position(100, 100)

    circle.difficulty_stack_height = 2
    offset = 2 * scale * -6.4
    assert_position_close(
        circle.difficulty_stacked_position,
        Position(100 + offset, 100 + offset),
    )
    # the gameplay space is independent
    assert circle.gameplay_stacked_position == Position(100, 100)

    circle.position = Position(200, 150)
    assert_position_close(
        circle.difficulty_stacked_position,
        Position(200 + offset, 150 + offset),
    )

    circle.difficulty_scale = scale * 2
    assert_position_close(
        circle.difficulty_stacked_position,
        Position(200 + offset * 2, 150 + offset * 2),
    )

    circle.stack_offset_multiplier = -4
    circle.gameplay_stack_height = 1
    assert_position_close(
        circle.gameplay_stacked_position,
        Position(200 - 4 * scale, 150 - 4 * scale),
    )


def test_slider_stacked_end_position():
    slider = Slider(
        0,
        Position(100, 100),
        Curve.from_kind_and_points(
            'L',
            [Position(100, 100), Position(200, 100)],
            100,
        ),
        span_count=1,
        pixel_length=100,
        ms_per_beat=500,
        slider_multiplier=1,
        tick_rate=1,
    )
    slider.apply_defaults(BeatmapDifficulty(cs=5), GameMode.standard)
    slider.difficulty_stack_height = 1
    offset = slider.difficulty_stack_offset

    assert_position_close(
        slider.difficulty_stacked_end_position,
        Position(200, 100) + offset,
    )
    # nested objects follow the slider's stack
    assert_position_close(
        slider.nested_hit_objects[-1].difficulty_stacked_position,
        Position(200, 100) + offset,
    )


def test_spinner_is_never_offset():
    spinner = Spinner(0, 1000)
    spinner.apply_defaults(BeatmapDifficulty(), GameMode.droid)
    spinner.difficulty_stack_height = 3
    assert spinner.difficulty_stacked_position == Position(256, 192)
    assert spinner.difficulty_stacked_end_position == Position(256, 192)


@pytest.mark.parametrize('format_version', [5, 14])
@pytest.mark.parametrize('mode', list(GameMode))
def test_hit_objects_stacking(format_version, mode):
    hit_objects = [Circle(x * 10, Position(128, 128)) for x in range(10)]
    beatmap = Beatmap(
        BeatmapDifficulty(cs=5, ar=5),
        hit_objects,
        format_version=format_version,
        stack_leniency=1,
    )
    playable = PlayableBeatmap(beatmap, mode)

    for i, ob in enumerate(reversed(playable.hit_objects)):
        assert ob.difficulty_stack_height == i
        assert ob.gameplay_stack_height == i

        offset = i * ob.difficulty_scale * ob.stack_offset_multiplier
        assert_position_close(
            ob.difficulty_stacked_position,
            Position(128 + offset, 128 + offset),
        )

    # the source beatmap is not modified
    assert all(ob.difficulty_stack_height == 0 for ob in beatmap.hit_objects)


def test_playable_beatmap(beatmap):
    playable = PlayableBeatmap(beatmap, GameMode.droid)

    assert playable.speed_multiplier == 1
    assert playable.max_combo == 9
    assert playable.hit_circle_count == 3
    assert playable.slider_count == 2
    assert playable.spinner_count == 1
    assert playable.hit_window.hit_300 == 60
    assert all(ob.time_preempt == 600 for ob in playable.hit_objects)


def test_playable_beatmap_rate_and_precise(beatmap):
    playable = beatmap.create_playable_beatmap([ModDoubleTime(), ModPrecise()])

    assert playable.speed_multiplier == 1.5
    assert playable.hit_window.hit_300 == 37
    # rate changes do not touch the object times
    assert playable.hit_objects[0].start_time == 1000


def test_playable_beatmap_hard_rock(beatmap):
    playable = PlayableBeatmap(beatmap, GameMode.droid, [ModHardRock()])

    first = playable.hit_objects[0]
    assert first.position == Position(100, 284)
    assert beatmap.hit_objects[0].position == Position(100, 100)

    slider = playable.hit_objects[2]
    assert slider.curve.points == [Position(300, 284), Position(400, 284)]
    assert_position_close(slider.end_position, Position(440, 284))

    assert playable.difficulty.cs == pytest.approx(5.2)
    assert beatmap.difficulty.cs == 4


def test_playable_beatmap_mirror(beatmap):
    playable = PlayableBeatmap(beatmap, GameMode.droid, [ModMirror()])
    assert playable.hit_objects[0].position == Position(412, 100)
    assert playable.hit_objects[4].position == Position(256, 192)


@pytest.mark.parametrize('ar,expected', [
    (0, 1800),
    (5, 1200),
    (9, 600),
    (10, 450),
])
def test_difficulty_range(ar, expected):
    assert BeatmapDifficulty.difficulty_range(ar, 1800, 1200, 450) == (
        pytest.approx(expected)
    )


def test_playable_beatmap_hidden_fade_in(beatmap):
    playable = PlayableBeatmap(beatmap, GameMode.droid, [ModHidden()])
    for ob in playable.hit_objects:
        assert ob.time_preempt == 600
        assert ob.time_fade_in == pytest.approx(600 * 0.4)

    # the source beatmap keeps the default fade in
    plain = PlayableBeatmap(beatmap, GameMode.droid)
    assert all(ob.time_fade_in == 400 for ob in plain.hit_objects)
