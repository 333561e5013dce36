import copy
import logging
import re

from .cancellation import check_cancelled
from .curve import Curve
from .game_mode import GameMode
from .mod import (
    ModPrecise,
    ModSet,
    circle_radius,
    droid_od_to_ms,
    od_to_ms,
)
from .position import Position, distance
from .utils import Cached, clamp, invalidates, lazyval, no_default, orange


log = logging.getLogger(__name__)


def _get(cs, ix, default=no_default):
    try:
        return cs[ix]
    except IndexError:
        if default is no_default:
            raise
        return default


class BeatmapDifficulty:
    """The difficulty settings of a beatmap.

    Parameters
    ----------
    cs : float
        The circle size.
    ar : float
        The approach rate.
    od : float
        The overall difficulty.
    hp : float
        The health drain rate.
    slider_multiplier : float, optional
        The base slider velocity multiplier.
    slider_tick_rate : float, optional
        The number of slider ticks per beat.
    """
    def __init__(self,
                 cs=5,
                 ar=5,
                 od=5,
                 hp=5,
                 slider_multiplier=1.4,
                 slider_tick_rate=1):
        self.cs = cs
        self.ar = ar
        self.od = od
        self.hp = hp
        self.slider_multiplier = slider_multiplier
        self.slider_tick_rate = slider_tick_rate

    def copy(self):
        return copy.copy(self)

    @staticmethod
    def difficulty_range(difficulty, min_, mid, max_):
        """Map a 0-10 difficulty value onto a range with a midpoint at 5.
        """
        if difficulty > 5:
            return mid + (max_ - mid) * (difficulty - 5) / 5
        if difficulty < 5:
            return mid + (mid - min_) * (difficulty - 5) / 5
        return mid

    def __repr__(self):
        return (
            f'<{type(self).__qualname__}: CS{self.cs:g} AR{self.ar:g}'
            f' OD{self.od:g} HP{self.hp:g}>'
        )


def circle_size_to_scale(cs, mode):
    """Convert a circle size into the scale of a hit object.

    Parameters
    ----------
    cs : float
        The circle size.
    mode : GameMode
        The game mode the object is played in.

    Returns
    -------
    scale : float
        The object scale; the radius in osu! pixels is
        ``HitObject.OBJECT_RADIUS * scale``.
    """
    if mode == GameMode.droid:
        # the droid scale is in screen space, where the playfield is 85% of
        # a 681 pixel high screen
        droid_scale = max(
            1e-3,
            (681 / 480) * (54.42 - cs * 4.48) * 2 / 128 +
            0.5 * (11 - 5.2450170716245195) / 5,
        )
        return droid_scale * Position.y_max / (681 * 0.85)

    return (
        circle_radius(cs) /
        HitObject.OBJECT_RADIUS *
        HitObject.broken_gamefield_rounding_allowance
    )


class HitObject:
    """An abstract hit element for osu! standard.

    Parameters
    ----------
    start_time : float
        When this element should be hit, in milliseconds.
    position : Position
        Where this element appears on the screen.
    new_combo : bool, optional
        Whether this element starts a new combo.
    combo_offset : int, optional
        The number of combo colours skipped when starting a new combo.

    Notes
    -----
    The stacked positions are cached and the caches are invalidated whenever
    one of the values they are derived from is written.
    """
    #: The radius of a hit circle at a scale of 1.
    OBJECT_RADIUS = 64

    PREEMPT_MAX = 1800
    PREEMPT_MID = 1200
    PREEMPT_MIN = 450

    broken_gamefield_rounding_allowance = 1.00041

    stack_offset_multipliers = {
        GameMode.droid: -4,
        GameMode.standard: -6.4,
    }

    position = invalidates(
        '_difficulty_stacked_position_cache',
        '_gameplay_stacked_position_cache',
    )
    stack_offset_multiplier = invalidates(
        '_difficulty_stack_offset_cache',
        '_difficulty_stacked_position_cache',
        '_gameplay_stack_offset_cache',
        '_gameplay_stacked_position_cache',
        default=0,
    )
    difficulty_stack_height = invalidates(
        '_difficulty_stack_offset_cache',
        '_difficulty_stacked_position_cache',
        default=0,
    )
    difficulty_scale = invalidates(
        '_difficulty_stack_offset_cache',
        '_difficulty_stacked_position_cache',
        default=0,
    )
    gameplay_stack_height = invalidates(
        '_gameplay_stack_offset_cache',
        '_gameplay_stacked_position_cache',
        default=0,
    )
    gameplay_scale = invalidates(
        '_gameplay_stack_offset_cache',
        '_gameplay_stacked_position_cache',
        default=0,
    )

    def __init__(self, start_time, position, new_combo=False, combo_offset=0):
        self._difficulty_stack_offset_cache = Cached()
        self._difficulty_stacked_position_cache = Cached()
        self._gameplay_stack_offset_cache = Cached()
        self._gameplay_stacked_position_cache = Cached()

        self.start_time = start_time
        self.position = position
        self.new_combo = new_combo
        self.combo_offset = combo_offset
        self.time_preempt = 600.0
        self.time_fade_in = 400.0
        self.hit_window = None

    def __repr__(self):
        return (
            f'<{type(self).__qualname__}: {tuple(self.position)},'
            f' {self.start_time:g}ms>'
        )

    @property
    def end_time(self):
        return self.start_time

    @property
    def duration(self):
        return self.end_time - self.start_time

    @property
    def end_position(self):
        return self.position

    @property
    def difficulty_radius(self):
        return self.OBJECT_RADIUS * self.difficulty_scale

    @property
    def gameplay_radius(self):
        return self.OBJECT_RADIUS * self.gameplay_scale

    @property
    def difficulty_stack_offset(self):
        cache = self._difficulty_stack_offset_cache
        if not cache.is_valid:
            offset = (
                self.difficulty_stack_height *
                self.difficulty_scale *
                self.stack_offset_multiplier
            )
            cache.value = Position(offset, offset)
        return cache.value

    @property
    def difficulty_stacked_position(self):
        cache = self._difficulty_stacked_position_cache
        if not cache.is_valid:
            cache.value = self.position + self.difficulty_stack_offset
        return cache.value

    @property
    def difficulty_stacked_end_position(self):
        return self.difficulty_stacked_position

    @property
    def gameplay_stack_offset(self):
        cache = self._gameplay_stack_offset_cache
        if not cache.is_valid:
            offset = (
                self.gameplay_stack_height *
                self.gameplay_scale *
                self.stack_offset_multiplier
            )
            cache.value = Position(offset, offset)
        return cache.value

    @property
    def gameplay_stacked_position(self):
        cache = self._gameplay_stacked_position_cache
        if not cache.is_valid:
            cache.value = self.position + self.gameplay_stack_offset
        return cache.value

    @property
    def gameplay_stacked_end_position(self):
        return self.gameplay_stacked_position

    def apply_defaults(self, difficulty, mode, hit_window=None):
        """Derive the timing and scale of this object from the difficulty
        settings.

        Parameters
        ----------
        difficulty : BeatmapDifficulty
            The (mod adjusted) difficulty settings.
        mode : GameMode
            The game mode the object is played in.
        hit_window : HitWindows, optional
            The hit window of the beatmap.
        """
        self.time_preempt = BeatmapDifficulty.difficulty_range(
            difficulty.ar,
            self.PREEMPT_MAX,
            self.PREEMPT_MID,
            self.PREEMPT_MIN,
        )
        # approach rates above 10 would otherwise cut the fade in short
        self.time_fade_in = 400 * min(1, self.time_preempt / self.PREEMPT_MIN)

        self.stack_offset_multiplier = self.stack_offset_multipliers[mode]
        self.difficulty_scale = circle_size_to_scale(difficulty.cs, mode)
        self.gameplay_scale = self.difficulty_scale
        self.hit_window = hit_window

    def reflect(self, *, horizontally=False, vertically=False):
        """Mirror this object along the playfield.
        """
        x, y = self.position
        self.position = Position(
            Position.x_max - x if horizontally else x,
            Position.y_max - y if vertically else y,
        )


class Circle(HitObject):
    """A circle hit element.
    """
    type_code = 1


class Spinner(HitObject):
    """A spinner hit element.

    Spinners always sit in the centre of the playfield and are never stacked.

    Parameters
    ----------
    start_time : float
        When this spinner starts, in milliseconds.
    end_time : float
        When this spinner ends, in milliseconds.
    new_combo : bool, optional
        Whether this spinner starts a new combo.
    """
    type_code = 8

    def __init__(self, start_time, end_time, new_combo=False):
        super().__init__(
            start_time,
            Position(Position.x_max / 2, Position.y_max / 2),
            new_combo,
        )
        self._end_time = end_time

    @property
    def end_time(self):
        return self._end_time

    @property
    def difficulty_stacked_position(self):
        return self.position

    @property
    def gameplay_stacked_position(self):
        return self.position

    def apply_defaults(self, difficulty, mode, hit_window=None):
        super().apply_defaults(difficulty, mode)

    def reflect(self, *, horizontally=False, vertically=False):
        pass


class SliderNestedObject(HitObject):
    """An object nested in a slider; it follows the slider's stacking.

    Parameters
    ----------
    slider : Slider
        The parent slider.
    start_time : float
        When this object is reached, in milliseconds.
    position : Position
        Where this object is, unstacked.
    span_index : int
        The span of the slider this object belongs to.
    """
    def __init__(self, slider, start_time, position, span_index):
        super().__init__(start_time, position)
        self.slider = slider
        self.span_index = span_index

    @property
    def difficulty_stacked_position(self):
        return self.position + self.slider.difficulty_stack_offset

    @property
    def gameplay_stacked_position(self):
        return self.position + self.slider.gameplay_stack_offset


class SliderHead(SliderNestedObject):
    pass


class SliderTick(SliderNestedObject):
    pass


class SliderRepeat(SliderNestedObject):
    pass


class SliderTail(SliderNestedObject):
    pass


class Slider(HitObject):
    """A slider hit element.

    Parameters
    ----------
    start_time : float
        When this slider starts, in milliseconds.
    position : Position
        Where this slider's head appears on the screen.
    curve : Curve
        The slider's path.
    span_count : int
        The number of times the path is travelled; ``1`` means there are no
        repeats.
    pixel_length : float
        The length of the path in osu! pixels.
    ms_per_beat : float
        The beat length of the timing section this slider is in.
    slider_multiplier : float
        The beatmap's base slider velocity multiplier.
    tick_rate : float
        The number of slider ticks per beat.
    velocity_multiplier : float, optional
        The slider velocity multiplier of the timing section.
    new_combo : bool, optional
        Whether this slider starts a new combo.
    combo_offset : int, optional
        The number of combo colours skipped when starting a new combo.
    """
    type_code = 2

    #: The distance in osu! pixels travelled in one beat at a velocity of 1.
    base_scoring_distance = 100

    position = invalidates(
        '_difficulty_stacked_position_cache',
        '_gameplay_stacked_position_cache',
        '_end_position_cache',
        '_nested_hit_objects_cache',
    )
    curve = invalidates('_end_position_cache', '_nested_hit_objects_cache')

    def __init__(self,
                 start_time,
                 position,
                 curve,
                 span_count,
                 pixel_length,
                 ms_per_beat,
                 slider_multiplier,
                 tick_rate,
                 velocity_multiplier=1.0,
                 new_combo=False,
                 combo_offset=0):
        self._end_position_cache = Cached()
        self._nested_hit_objects_cache = Cached()
        super().__init__(start_time, position, new_combo, combo_offset)
        self.curve = curve
        self.span_count = max(1, span_count)
        self.pixel_length = pixel_length
        self.ms_per_beat = ms_per_beat
        self.slider_multiplier = slider_multiplier
        self.tick_rate = tick_rate
        self.velocity_multiplier = velocity_multiplier

        scoring_distance = (
            self.base_scoring_distance *
            slider_multiplier *
            velocity_multiplier
        )
        #: osu! pixels per millisecond
        self.velocity = scoring_distance / ms_per_beat
        self.tick_distance = scoring_distance / tick_rate if tick_rate else 0
        self.span_duration = (
            pixel_length / self.velocity if self.velocity else 0
        )

    @property
    def repeat_count(self):
        return self.span_count - 1

    @property
    def end_time(self):
        return self.start_time + self.span_count * self.span_duration

    @property
    def end_position(self):
        cache = self._end_position_cache
        if not cache.is_valid:
            cache.value = self.curve_position_at(self.span_count % 2)
        return cache.value

    @property
    def difficulty_stacked_end_position(self):
        return self.end_position + self.difficulty_stack_offset

    @property
    def gameplay_stacked_end_position(self):
        return self.end_position + self.gameplay_stack_offset

    def curve_position_at(self, progress):
        """The unstacked position along the path.

        Parameters
        ----------
        progress : float
            The progress along one span in the range [0, 1].
        """
        if progress <= 0:
            return self.position
        return self.curve(min(progress, 1))

    @property
    def nested_hit_objects(self):
        """The head, ticks, repeats and tail of this slider in time order.
        """
        cache = self._nested_hit_objects_cache
        if not cache.is_valid:
            cache.value = self._create_nested_hit_objects()
        return cache.value

    def _create_nested_hit_objects(self):
        nested = [SliderHead(self, self.start_time, self.position, 0)]

        length = self.pixel_length
        span_duration = self.span_duration
        tick_distance = min(self.tick_distance, length)

        if tick_distance > 0 and self.velocity > 0:
            # ticks too close to the end of a span are skipped
            stop = length - self.velocity * 10
            distances = list(orange(tick_distance, stop, tick_distance))
        else:
            distances = []

        for span in range(self.span_count):
            span_start = self.start_time + span * span_duration
            reverse = span % 2 == 1

            for d in (reversed(distances) if reverse else distances):
                offset = length - d if reverse else d
                nested.append(SliderTick(
                    self,
                    span_start + offset / self.velocity,
                    self.curve_position_at(d / length),
                    span,
                ))

            if span < self.span_count - 1:
                nested.append(SliderRepeat(
                    self,
                    span_start + span_duration,
                    self.curve_position_at(0 if reverse else 1),
                    span,
                ))

        nested.append(SliderTail(
            self,
            self.end_time,
            self.end_position,
            self.span_count - 1,
        ))
        return nested

    def reflect(self, *, horizontally=False, vertically=False):
        super().reflect(horizontally=horizontally, vertically=vertically)
        self.curve = self.curve.reflected(
            horizontally=horizontally,
            vertically=vertically,
        )


def combo_of(hit_object):
    """The combo a hit object awards.
    """
    if isinstance(hit_object, Slider):
        return len(hit_object.nested_hit_objects)
    return 1


class TimingPoint:
    """A timing point assigns a beat length to an offset into a beatmap.

    Parameters
    ----------
    offset : float
        When this ``TimingPoint`` takes effect, in milliseconds.
    ms_per_beat : float
        The milliseconds per beat. Inherited timing points store a negative
        slider velocity percentage instead.
    parent : TimingPoint or None
        The uninherited timing point this one inherits from.
    """
    def __init__(self, offset, ms_per_beat, parent=None):
        self.offset = offset
        self.ms_per_beat = ms_per_beat
        self.parent = parent

    @property
    def beat_length(self):
        if self.parent is None:
            return self.ms_per_beat
        return self.parent.ms_per_beat

    @property
    def velocity_multiplier(self):
        if self.parent is None:
            return 1.0
        return clamp(-100 / self.ms_per_beat, 0.1, 10)

    def __repr__(self):
        inherited = '' if self.parent is None else 'inherited '
        return f'<{type(self).__qualname__}: {inherited}{self.offset:g}ms>'

    @classmethod
    def parse(cls, data, parent):
        """Parse a TimingPoint object from a line in a ``.osu`` file.

        Parameters
        ----------
        data : str
            The line to parse.
        parent : TimingPoint
            The last non-inherited timing point.

        Returns
        -------
        timing_point : TimingPoint
            The parsed timing point.

        Raises
        ------
        ValueError
            Raised when ``data`` does not describe a ``TimingPoint`` object.
        """
        try:
            offset, ms_per_beat, *rest = data.split(',')
        except ValueError:
            raise ValueError(
                f'failed to parse {cls.__qualname__} from {data!r}',
            )

        try:
            offset = float(offset)
        except ValueError:
            raise ValueError(f'offset should be a float, got {offset!r}')

        try:
            ms_per_beat = float(ms_per_beat)
        except ValueError:
            raise ValueError(
                f'ms_per_beat should be a float, got {ms_per_beat!r}',
            )

        raw_uninherited = _get(rest, 4, '1')
        try:
            inherited = not int(raw_uninherited)
        except ValueError:
            raise ValueError(
                f'inherited should be a bool, got {raw_uninherited!r}',
            )

        if parent is None or ms_per_beat > 0:
            # old beatmaps mark inheritance with the sign only
            inherited = inherited and ms_per_beat < 0 and parent is not None

        return cls(offset, ms_per_beat, parent if inherited else None)


def _parse_hit_object(data, timing_point_at, difficulty):
    """Parse a HitObject from a line in a ``.osu`` file.

    Raises
    ------
    ValueError
        Raised when ``data`` does not describe a ``HitObject`` object.
    """
    try:
        x, y, time, type_, hitsound, *rest = data.split(',')
    except ValueError:
        raise ValueError(f'not enough elements in line, got {data!r}')

    try:
        position = Position(float(x), float(y))
    except ValueError:
        raise ValueError(f'position should be numeric, got {x!r}, {y!r}')

    try:
        time = float(time)
    except ValueError:
        raise ValueError(f'time should be a number, got {time!r}')

    try:
        type_ = int(type_)
    except ValueError:
        raise ValueError(f'type should be an int, got {type_!r}')

    new_combo = bool(type_ & 4)
    combo_offset = (type_ >> 4) & 7

    if type_ & Circle.type_code:
        return Circle(time, position, new_combo, combo_offset)

    if type_ & Spinner.type_code:
        try:
            end_time = float(rest[0])
        except (IndexError, ValueError):
            raise ValueError(f'spinner end_time is missing or malformed in'
                             f' {data!r}')
        return Spinner(time, max(time, end_time), new_combo)

    if not type_ & Slider.type_code:
        raise ValueError(f'unknown type code {type_!r}')

    try:
        group_1, repeat, pixel_length, *rest = rest
    except ValueError:
        raise ValueError(f'missing required slider data in {data!r}')

    slider_type, *raw_points = group_1.split('|')
    points = [position]
    for point in raw_points:
        try:
            px, py = point.split(':')
            points.append(Position(float(px), float(py)))
        except ValueError:
            raise ValueError(
                f'expected points in the form x:y, got {point!r}',
            )

    try:
        repeat = int(repeat)
    except ValueError:
        raise ValueError(f'repeat should be an int, got {repeat!r}')

    try:
        pixel_length = float(pixel_length)
    except ValueError:
        raise ValueError(
            f'pixel_length should be a float, got {pixel_length!r}',
        )

    timing_point = timing_point_at(time)
    return Slider(
        time,
        position,
        Curve.from_kind_and_points(slider_type, points, pixel_length),
        repeat,
        pixel_length,
        timing_point.beat_length,
        difficulty.slider_multiplier,
        difficulty.slider_tick_rate,
        timing_point.velocity_multiplier,
        new_combo,
        combo_offset,
    )


def _get_as_float(groups, section, field, default=no_default):
    """Lookup a field from a given section and parse it as a float.

    Parameters
    ----------
    groups : dict[str, dict[str, str]]
        The grouped osu! file.
    section : str
        The section to read from.
    field : str
        The field to read and parse.
    default : float, optional
        A value to return if ``field`` is not in ``groups[section]``.

    Returns
    -------
    f : float
        ``float(groups[section][field])`` or default if ``field` is not in
        ``groups[section]``.
    """
    try:
        v = groups[section][field]
    except KeyError:
        if default is no_default:
            raise ValueError(f'missing field {field!r} in section {section!r}')
        return default

    try:
        return float(v)
    except ValueError:
        raise ValueError(
            f'field {field!r} in section {section!r} should be a float,'
            f' got {v!r}',
        )


class Beatmap:
    """An osu! standard beatmap as far as difficulty calculation is
    concerned.

    Parameters
    ----------
    difficulty : BeatmapDifficulty
        The difficulty settings.
    hit_objects : list[HitObject]
        The hit objects in the map. They are kept ordered by start time.
    format_version : int, optional
        The version of the beatmap file.
    stack_leniency : float, optional
        How often closely placed hit objects will be stacked together.
    timing_points : list[TimingPoint], optional
        The timing points of the map.
    title, artist, creator, version : str, optional
        Metadata used for display.
    """
    _version_regex = re.compile(r'^osu file format v(\d+)$')

    def __init__(self,
                 difficulty,
                 hit_objects,
                 *,
                 format_version=14,
                 stack_leniency=0.7,
                 timing_points=(),
                 title='',
                 artist='',
                 creator='',
                 version=''):
        self.difficulty = difficulty
        self.hit_objects = sorted(hit_objects, key=lambda ob: ob.start_time)
        self.format_version = format_version
        self.stack_leniency = stack_leniency
        self.timing_points = list(timing_points)
        self.title = title
        self.artist = artist
        self.creator = creator
        self.version = version

    @property
    def display_name(self):
        """The name of the map as it appears in game.
        """
        return f'{self.artist} - {self.title} [{self.version}]'

    @lazyval
    def max_combo(self):
        """The highest combo that can be achieved on this beatmap.
        """
        return sum(map(combo_of, self.hit_objects))

    def __repr__(self):
        return f'<{type(self).__qualname__}: {self.display_name}>'

    def create_playable_beatmap(self,
                                mods=None,
                                mode=GameMode.droid,
                                *,
                                cancellation_token=None):
        """Create a :class:`PlayableBeatmap` of this map.

        See Also
        --------
        :class:`starcalc.beatmap.PlayableBeatmap`
        """
        return PlayableBeatmap(
            self,
            mode,
            mods,
            cancellation_token=cancellation_token,
        )

    @classmethod
    def from_path(cls, path):
        """Read in a ``Beatmap`` object from a file on disk.

        Parameters
        ----------
        path : str or pathlib.Path
            The path to the file to read from.

        Returns
        -------
        beatmap : Beatmap
            The parsed beatmap object.

        Raises
        ------
        ValueError
            Raised when the file cannot be parsed as a ``.osu`` file.
        """
        with open(path, encoding='utf-8-sig') as file:
            return cls.from_file(file)

    @classmethod
    def from_file(cls, file):
        """Read in a ``Beatmap`` object from an open file object.
        """
        return cls.parse(file.read())

    _mapping_groups = frozenset({
        'General',
        'Metadata',
        'Difficulty',
    })

    @classmethod
    def _find_groups(cls, lines):
        """Split the input data into the named groups.

        Parameters
        ----------
        lines : iterator[str]
            The raw lines from the file.

        Returns
        -------
        groups : dict[str, list[str] or dict[str, str]]
            The lines in the section. If the section is a mapping section
            the the value will be a dict from key to value.
        """
        groups = {}

        current_group = None
        group_buffer = []

        def commit_group():
            nonlocal group_buffer

            if current_group is None:
                return

            if current_group in cls._mapping_groups:
                # build a dict from the ``Key: Value`` line format.
                mapping = {}
                for line in group_buffer:
                    key, _, value = line.partition(':')
                    mapping[key.strip()] = value.strip()
                group_buffer = mapping

            groups[current_group] = group_buffer
            group_buffer = []

        for line in lines:
            line = line.strip()
            if not line or line.startswith('//'):
                continue

            if line[0] == '[' and line[-1] == ']':
                commit_group()
                current_group = line[1:-1]
            else:
                group_buffer.append(line)

        commit_group()
        return groups

    @classmethod
    def parse(cls, data):
        """Parse a ``Beatmap`` from text in the ``.osu`` format.

        Parameters
        ----------
        data : str
            The data to parse.

        Returns
        -------
        beatmap : Beatmap
            The parsed beatmap object.

        Raises
        ------
        ValueError
            Raised when the data cannot be parsed in the ``.osu`` format or
            is not an osu!standard beatmap.
        """
        data = data.lstrip()
        lines = iter(data.splitlines())
        line = next(lines, '')
        match = cls._version_regex.match(line.strip())
        if match is None:
            raise ValueError(f'missing osu file format specifier in: {line!r}')

        format_version = int(match.group(1))
        groups = cls._find_groups(lines)

        mode = _get_as_float(groups, 'General', 'Mode', 0)
        if mode != 0:
            raise ValueError(f'only osu!standard beatmaps are supported,'
                             f' got mode {mode:g}')

        od = _get_as_float(groups, 'Difficulty', 'OverallDifficulty')
        difficulty = BeatmapDifficulty(
            cs=_get_as_float(groups, 'Difficulty', 'CircleSize'),
            # old maps didn't have an AR so the OD is used as a default
            ar=_get_as_float(groups, 'Difficulty', 'ApproachRate', od),
            od=od,
            hp=_get_as_float(groups, 'Difficulty', 'HPDrainRate'),
            slider_multiplier=_get_as_float(
                groups,
                'Difficulty',
                'SliderMultiplier',
                1.4,
            ),
            slider_tick_rate=_get_as_float(
                groups,
                'Difficulty',
                'SliderTickRate',
                1.0,
            ),
        )

        timing_points = []
        parent = None
        for raw_timing_point in groups.get('TimingPoints', []):
            timing_point = TimingPoint.parse(raw_timing_point, parent)
            if timing_point.parent is None:
                parent = timing_point
            timing_points.append(timing_point)

        if not timing_points:
            raise ValueError('beatmap has no timing points')

        def timing_point_at(time):
            for tp in reversed(timing_points):
                if tp.offset <= time:
                    return tp
            return timing_points[0]

        metadata = groups.get('Metadata', {})
        return cls(
            difficulty,
            [
                _parse_hit_object(raw, timing_point_at, difficulty)
                for raw in groups.get('HitObjects', [])
            ],
            format_version=format_version,
            stack_leniency=_get_as_float(
                groups,
                'General',
                'StackLeniency',
                0.7,
            ),
            timing_points=timing_points,
            title=metadata.get('Title', ''),
            artist=metadata.get('Artist', ''),
            creator=metadata.get('Creator', ''),
            version=metadata.get('Version', ''),
        )


class HitObjectCounts:
    """Object counts of anything holding a ``hit_objects`` list.
    """
    @property
    def hit_circle_count(self):
        return sum(isinstance(ob, Circle) for ob in self.hit_objects)

    @property
    def slider_count(self):
        return sum(isinstance(ob, Slider) for ob in self.hit_objects)

    @property
    def spinner_count(self):
        return sum(isinstance(ob, Spinner) for ob in self.hit_objects)


class PlayableBeatmap(HitObjectCounts):
    """A beatmap with mods, defaults and stacking applied.

    Parameters
    ----------
    beatmap : Beatmap
        The beatmap to convert. It is not modified.
    mode : GameMode
        The game mode to make the beatmap playable for.
    mods : iterable[Mod], optional
        The mods to apply.
    cancellation_token : CancellationToken, optional
        Polled between hit objects.

    Raises
    ------
    CalculationCancelled
        Raised when ``cancellation_token`` is cancelled.
    """
    stack_distance = 3

    def __init__(self, beatmap, mode, mods=None, *, cancellation_token=None):
        self.beatmap = beatmap
        self.mode = mode
        self.mods = mods = ModSet(mods or ())
        self.format_version = beatmap.format_version
        self.stack_leniency = beatmap.stack_leniency
        self.speed_multiplier = mods.clock_rate

        difficulty = beatmap.difficulty.copy()
        for mod in mods.in_application_order():
            mod.apply_to_difficulty(difficulty, mods)
        self.difficulty = difficulty

        if mode == GameMode.droid:
            self.hit_window = droid_od_to_ms(
                difficulty.od,
                precise=ModPrecise in mods,
            )
        else:
            self.hit_window = od_to_ms(difficulty.od)

        hit_objects = copy.deepcopy(beatmap.hit_objects)
        for hit_object in hit_objects:
            check_cancelled(cancellation_token)
            for mod in mods:
                mod.apply_to_hit_object(hit_object)
            hit_object.apply_defaults(difficulty, mode, self.hit_window)
            for mod in mods:
                mod.apply_to_hit_object_after_defaults(hit_object)

        if self.format_version >= 6:
            self._resolve_stacking(hit_objects)
        else:
            log.debug(
                'using the legacy stacking algorithm for format v%d',
                self.format_version,
            )
            self._resolve_stacking_old(hit_objects)

        self.hit_objects = hit_objects

    @lazyval
    def max_combo(self):
        """The highest combo that can be achieved on this beatmap.
        """
        return sum(map(combo_of, self.hit_objects))

    def __repr__(self):
        return (
            f'<{type(self).__qualname__}: {self.beatmap.display_name}'
            f' {self.mods!r}>'
        )

    def _stack_threshold(self, hit_objects):
        if not hit_objects:
            return 0
        return hit_objects[0].time_preempt * self.stack_leniency

    def _apply_stack_heights(self, stack_height):
        for hit_object, height in stack_height.items():
            if isinstance(hit_object, Spinner):
                height = 0
            hit_object.difficulty_stack_height = height
            hit_object.gameplay_stack_height = height

    def _resolve_stacking(self, hit_objects):
        """Compute stack heights for beatmap versions 6 and up.

        Parameters
        ----------
        hit_objects : list[HitObject]
            The objects to resolve stacking for, with defaults applied.
        """
        stack_threshold = self._stack_threshold(hit_objects)
        stack_dist = self.stack_distance
        stack_height = {ob: 0 for ob in hit_objects}
        # walk backwards in time, stacks grow towards earlier objects
        reversed_objects = list(reversed(hit_objects))

        for i, ob_i in enumerate(reversed_objects):
            if stack_height[ob_i] != 0 or isinstance(ob_i, Spinner):
                continue

            if isinstance(ob_i, Circle):
                for n in range(i + 1, len(reversed_objects)):
                    ob_n = reversed_objects[n]
                    if isinstance(ob_n, Spinner):
                        continue

                    if ob_i.start_time - ob_n.end_time > stack_threshold:
                        break

                    if (isinstance(ob_n, Slider) and
                            distance(ob_n.end_position,
                                     ob_i.position) < stack_dist):
                        offset = stack_height[ob_i] - stack_height[ob_n] + 1

                        # objects stacked under the slider's end are moved
                        # below it instead of above
                        for hj in reversed_objects[i:n]:
                            dist = distance(ob_n.end_position, hj.position)
                            if dist < stack_dist:
                                stack_height[hj] -= offset

                        # the slider becomes the base of a new stack in the
                        # outer loop
                        break

                    if distance(ob_n.position, ob_i.position) < stack_dist:
                        stack_height[ob_n] = stack_height[ob_i] + 1
                        ob_i = ob_n

            elif isinstance(ob_i, Slider):
                # from the first slider of a stack on, always stack upwards
                for n in range(i + 1, len(reversed_objects)):
                    ob_n = reversed_objects[n]
                    if isinstance(ob_n, Spinner):
                        continue

                    if ob_i.start_time - ob_n.start_time > stack_threshold:
                        break

                    if distance(ob_n.end_position, ob_i.position) < stack_dist:
                        stack_height[ob_n] = stack_height[ob_i] + 1
                        ob_i = ob_n

        self._apply_stack_heights(stack_height)

    def _resolve_stacking_old(self, hit_objects):
        """Compute stack heights for beatmap versions 5 and below.

        Parameters
        ----------
        hit_objects : list[HitObject]
            The objects to resolve stacking for, with defaults applied.
        """
        stack_threshold = self._stack_threshold(hit_objects)
        stack_dist = self.stack_distance
        stack_height = {ob: 0 for ob in hit_objects}

        for i, ob_i in enumerate(hit_objects):
            if stack_height[ob_i] != 0 and not isinstance(ob_i, Slider):
                continue

            start_time = ob_i.end_time
            slider_stack = 0

            for ob_j in hit_objects[i + 1:]:
                if ob_j.start_time - stack_threshold > start_time:
                    break

                if distance(ob_j.position, ob_i.position) < stack_dist:
                    stack_height[ob_i] += 1
                    start_time = ob_j.end_time
                elif (isinstance(ob_i, Slider) and
                      distance(ob_j.position, ob_i.end_position) < stack_dist):
                    # objects stacked on a slider's end move down and right
                    slider_stack += 1
                    stack_height[ob_j] -= slider_stack
                    start_time = ob_j.end_time

        self._apply_stack_heights(stack_height)
