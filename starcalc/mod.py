from collections import namedtuple
from collections.abc import Set
from functools import reduce
import logging
import operator as op

from .bit_enum import BitEnum


log = logging.getLogger(__name__)


class LegacyMod(BitEnum):
    """The mods as stored in legacy score and replay data.

    Notes
    -----
    The bits up to ``scoreV2`` follow osu!'s mod mask. The remaining members
    only exist in osu!droid and have no bit in osu!'s mask.
    """
    no_fail = 1
    easy = 1 << 1
    no_video = 1 << 2  # not a mod anymore
    hidden = 1 << 3
    hard_rock = 1 << 4
    sudden_death = 1 << 5
    double_time = 1 << 6
    relax = 1 << 7
    half_time = 1 << 8
    nightcore = 1 << 9  # always used with double_time
    flashlight = 1 << 10
    autoplay = 1 << 11
    spun_out = 1 << 12
    auto_pilot = 1 << 13
    perfect = 1 << 14
    key4 = 1 << 15
    key5 = 1 << 16
    key6 = 1 << 17
    key7 = 1 << 18
    key8 = 1 << 19
    fade_in = 1 << 20
    random = 1 << 21
    cinema = 1 << 22
    target_practice = 1 << 23
    key9 = 1 << 24
    coop = 1 << 25
    key1 = 1 << 26
    key3 = 1 << 27
    key2 = 1 << 28
    scoreV2 = 1 << 29
    precise = 1 << 30
    small_circle = 1 << 31
    really_easy = 1 << 32
    traceable = 1 << 33

    @classmethod
    def parse(cls, cs):
        """Parse a mod mask out of a list of shortened mod names.

        Parameters
        ----------
        cs : str
            The mod string, for example ``'HDDT'``.

        Returns
        -------
        mod_mask : int
            The mod mask.

        Raises
        ------
        ValueError
            Raised when the string is malformed or names an unknown mod.
        """
        if len(cs) % 2 != 0:
            raise ValueError(f'malformed mods: {cs!r}')

        cs = cs.lower()
        mapping = {
            'nf': cls.no_fail,
            'ez': cls.easy,
            'hd': cls.hidden,
            'hr': cls.hard_rock,
            'sd': cls.sudden_death,
            'dt': cls.double_time,
            'rx': cls.relax,
            'ht': cls.half_time,
            'nc': cls.nightcore,
            'fl': cls.flashlight,
            'at': cls.autoplay,
            'ap': cls.auto_pilot,
            'pf': cls.perfect,
            'v2': cls.scoreV2,
            'pr': cls.precise,
            'sc': cls.small_circle,
            're': cls.really_easy,
            'tc': cls.traceable,
        }

        mod = 0
        for n in range(0, len(cs), 2):
            try:
                mod |= mapping[cs[n:n + 2]]
            except KeyError:
                raise ValueError(f'unknown mod: {cs[n:n + 2]!r}')

        return mod


class Mod:
    """A gameplay modifier.

    Mods are plain data here: the calculator only reads their identity,
    their compatibility and the numeric adjustments they make to a beatmap.
    """
    #: The two letter name of the mod.
    acronym = None
    #: The character used for this mod in legacy mod strings, if any.
    droid_char = None
    ranked = False

    @property
    def incompatible_mods(self):
        """The mod types which may not be enabled together with this mod.
        """
        return ()

    def is_compatible_with(self, other):
        """Whether this mod may be enabled together with ``other``.

        The check is symmetric.
        """
        return not (
            isinstance(other, self.incompatible_mods) or
            isinstance(self, other.incompatible_mods)
        )

    def apply_to_difficulty(self, difficulty, mods):
        """Adjust the difficulty settings of a beatmap in place.

        Parameters
        ----------
        difficulty : BeatmapDifficulty
            The settings to adjust.
        mods : ModSet
            All of the mods being applied.
        """

    def apply_to_hit_object(self, hit_object):
        """Adjust a hit object in place before defaults are applied.
        """

    def apply_to_hit_object_after_defaults(self, hit_object):
        """Adjust a hit object in place once its defaults are applied.
        """

    def _parameters(self):
        return ()

    def __eq__(self, other):
        return (
            type(self) is type(other) and
            self._parameters() == other._parameters()
        )

    def __hash__(self):
        return hash((type(self), self._parameters()))

    def __repr__(self):
        parameters = ', '.join(map(repr, self._parameters()))
        return f'{type(self).__qualname__}({parameters})'


class ModAuto(Mod):
    acronym = 'AT'
    droid_char = 'a'

    @property
    def incompatible_mods(self):
        return ModAutopilot, ModRelax, ModNoFail, ModPerfect, ModSuddenDeath


class ModAutopilot(Mod):
    acronym = 'AP'
    droid_char = 'p'

    @property
    def incompatible_mods(self):
        return ModAuto, ModRelax, ModNoFail


class ModRelax(Mod):
    acronym = 'RX'
    droid_char = 'x'

    @property
    def incompatible_mods(self):
        return ModAuto, ModAutopilot, ModNoFail


class ModNoFail(Mod):
    acronym = 'NF'
    droid_char = 'n'
    ranked = True

    @property
    def incompatible_mods(self):
        return ModPerfect, ModSuddenDeath, ModAutopilot, ModRelax


class ModSuddenDeath(Mod):
    acronym = 'SD'
    droid_char = 'u'
    ranked = True

    @property
    def incompatible_mods(self):
        return ModNoFail, ModPerfect, ModAuto


class ModPerfect(Mod):
    acronym = 'PF'
    droid_char = 'f'
    ranked = True

    @property
    def incompatible_mods(self):
        return ModNoFail, ModSuddenDeath, ModAuto


class ModRateAdjust(Mod):
    """A mod which changes the playback rate of the beatmap.

    Parameters
    ----------
    track_rate : float
        The speed multiplier.
    """
    def __init__(self, track_rate):
        self.track_rate = track_rate

    def _parameters(self):
        return (self.track_rate,)


class ModDoubleTime(ModRateAdjust):
    acronym = 'DT'
    droid_char = 'd'
    ranked = True

    def __init__(self):
        super().__init__(1.5)

    def _parameters(self):
        return ()

    @property
    def incompatible_mods(self):
        return ModNightCore, ModHalfTime


class ModNightCore(ModRateAdjust):
    acronym = 'NC'
    droid_char = 'c'
    ranked = True

    def __init__(self):
        super().__init__(1.5)

    def _parameters(self):
        return ()

    @property
    def incompatible_mods(self):
        return ModDoubleTime, ModHalfTime


class ModHalfTime(ModRateAdjust):
    acronym = 'HT'
    droid_char = 't'
    ranked = True

    def __init__(self):
        super().__init__(0.75)

    def _parameters(self):
        return ()

    @property
    def incompatible_mods(self):
        return ModDoubleTime, ModNightCore


class ModCustomSpeed(ModRateAdjust):
    """A free playback rate, stacked multiplicatively with the other rate
    mods.
    """
    acronym = 'CS'

    def __init__(self, track_rate=1.0):
        super().__init__(track_rate)


class ModEasy(Mod):
    acronym = 'EZ'
    droid_char = 'e'
    ranked = True

    @property
    def incompatible_mods(self):
        return (ModHardRock,)

    def apply_to_difficulty(self, difficulty, mods):
        difficulty.cs *= 0.5
        difficulty.ar *= 0.5
        difficulty.od *= 0.5
        difficulty.hp *= 0.5


class ModReallyEasy(Mod):
    acronym = 'RE'
    droid_char = 'l'

    def apply_to_difficulty(self, difficulty, mods):
        if ModEasy in mods:
            # undo part of easy's halving before lowering the approach rate
            difficulty.ar = difficulty.ar * 2 - 0.5

        difficulty.ar -= 0.5
        difficulty.ar -= mods.clock_rate - 1
        difficulty.od *= 0.5
        difficulty.hp *= 0.5


class ModHardRock(Mod):
    acronym = 'HR'
    droid_char = 'r'
    ranked = True

    @property
    def incompatible_mods(self):
        return ModEasy, ModMirror

    def apply_to_difficulty(self, difficulty, mods):
        difficulty.cs = min(difficulty.cs * 1.3, 10)
        difficulty.ar = min(difficulty.ar * 1.4, 10)
        difficulty.od = min(difficulty.od * 1.4, 10)
        difficulty.hp = min(difficulty.hp * 1.4, 10)

    def apply_to_hit_object(self, hit_object):
        hit_object.reflect(vertically=True)


class ModMirror(Mod):
    """Mirror the hit objects along the playfield.

    Parameters
    ----------
    horizontally : bool, optional
        Mirror along the vertical axis, swapping left and right.
    vertically : bool, optional
        Mirror along the horizontal axis, swapping top and bottom.
    """
    acronym = 'MR'

    def __init__(self, horizontally=True, vertically=False):
        self.horizontally = horizontally
        self.vertically = vertically

    def _parameters(self):
        return self.horizontally, self.vertically

    @property
    def incompatible_mods(self):
        return (ModHardRock,)

    def apply_to_hit_object(self, hit_object):
        hit_object.reflect(
            horizontally=self.horizontally,
            vertically=self.vertically,
        )


class ModHidden(Mod):
    acronym = 'HD'
    droid_char = 'h'
    ranked = True

    #: The portion of the preempt time over which objects fade in.
    fade_in_duration_multiplier = 0.4
    #: The portion of the preempt time over which objects fade out.
    fade_out_duration_multiplier = 0.3

    @property
    def incompatible_mods(self):
        return (ModTraceable,)

    def apply_to_hit_object_after_defaults(self, hit_object):
        hit_object.time_fade_in = (
            hit_object.time_preempt * self.fade_in_duration_multiplier
        )


class ModTraceable(Mod):
    acronym = 'TC'
    droid_char = 'b'

    @property
    def incompatible_mods(self):
        return (ModHidden,)


class ModFlashlight(Mod):
    """Restricted vision around the cursor.

    Parameters
    ----------
    follow_delay : float, optional
        The time in seconds it takes the flashlight to catch up to the
        cursor.
    """
    acronym = 'FL'
    droid_char = 'i'
    ranked = True

    DEFAULT_FOLLOW_DELAY = 0.12

    def __init__(self, follow_delay=DEFAULT_FOLLOW_DELAY):
        self.follow_delay = follow_delay

    def _parameters(self):
        return (self.follow_delay,)


class ModPrecise(Mod):
    acronym = 'PR'
    droid_char = 's'
    ranked = True


class ModSmallCircle(Mod):
    acronym = 'SC'
    droid_char = 'm'

    def apply_to_difficulty(self, difficulty, mods):
        difficulty.cs += 4


class ModScoreV2(Mod):
    acronym = 'V2'
    droid_char = 'v'


class ModDifficultyAdjust(Mod):
    """Override some of the difficulty settings of a beatmap.

    Parameters
    ----------
    cs, ar, od, hp : float or None
        The overridden values. ``None`` keeps the beatmap's (mod adjusted)
        value.
    """
    acronym = 'DA'

    def __init__(self, cs=None, ar=None, od=None, hp=None):
        self.cs = cs
        self.ar = ar
        self.od = od
        self.hp = hp

    def _parameters(self):
        return self.cs, self.ar, self.od, self.hp

    def apply_to_difficulty(self, difficulty, mods):
        for name, value in zip(('cs', 'ar', 'od', 'hp'), self._parameters()):
            if value is not None:
                setattr(difficulty, name, value)


def _application_order(mod):
    # overrides are applied last so that they are final
    return isinstance(mod, ModDifficultyAdjust), mod.acronym


class ModSet(Set):
    """A set of mods where each mod type appears at most once.

    Parameters
    ----------
    mods : iterable[Mod], optional
        The mods to add, in order.

    Notes
    -----
    Adding a mod replaces a mod of the same type and removes every mod which
    is incompatible with it, so the most recently added mod wins.
    """
    def __init__(self, mods=()):
        self._mods = {}
        for mod in mods:
            self.add(mod)

    def add(self, mod):
        for existing in list(self._mods.values()):
            if type(existing) is type(mod):
                continue

            if not mod.is_compatible_with(existing):
                log.debug('dropping %r: incompatible with %r', existing, mod)
                del self._mods[type(existing)]

        self._mods[type(mod)] = mod

    def discard(self, mod):
        """Remove a mod, or every mod of a given type.
        """
        if isinstance(mod, type):
            for key in [k for k in self._mods if issubclass(k, mod)]:
                del self._mods[key]
        elif self._mods.get(type(mod)) == mod:
            del self._mods[type(mod)]

    def of_type(self, cls):
        """The first mod which is an instance of ``cls``, or None.
        """
        for mod in self._mods.values():
            if isinstance(mod, cls):
                return mod
        return None

    def __contains__(self, item):
        if isinstance(item, type):
            return self.of_type(item) is not None
        return self._mods.get(type(item)) == item

    def __iter__(self):
        return iter(self._mods.values())

    def __len__(self):
        return len(self._mods)

    def copy(self):
        return type(self)(self)

    @property
    def clock_rate(self):
        """The combined playback rate of all rate adjusting mods.
        """
        return reduce(
            op.mul,
            (mod.track_rate for mod in self if isinstance(mod, ModRateAdjust)),
            1.0,
        )

    def in_application_order(self):
        """The mods in the order their difficulty adjustments are applied.
        """
        return sorted(self, key=_application_order)

    def __repr__(self):
        acronyms = ''.join(mod.acronym for mod in self)
        return f'<{type(self).__qualname__}: {acronyms or "NM"}>'


def ar_to_ms(ar):
    """Convert an approach rate value to milliseconds of time that an element
    appears on the screen before being hit.

    Parameters
    ----------
    ar : float
        The approach rate.

    Returns
    -------
    milliseconds : float
        The number of milliseconds that an element appears on the screen before
         being hit at the given approach rate.

    See Also
    --------
    :func:`starcalc.mod.ms_to_ar`
    """
    # NOTE: The formula for ar_to_ms is different for ar >= 5 and ar < 5
    # see: https://osu.ppy.sh/wiki/Song_Setup#Approach_Rate
    if ar >= 5:
        return 1950 - (ar * 150)
    else:
        return 1800 - (ar * 120)


def ms_to_ar(ms):
    """Convert milliseconds to hit an element into an approach rate value.

    Parameters
    ----------
    ms : float
        The number of milliseconds that an element appears on the screen before
        being hit.

    Returns
    -------
    ar : float
        The approach rate value that produces the given millisecond value.

    See Also
    --------
    :func:`starcalc.mod.ar_to_ms`
    """
    ar = (ms - 1950) / -150
    if ar < 5:
        # the ar lines cross at 5 but we use a different formula for the slower
        # approach rates.
        return (ms - 1800) / -120
    return ar


def circle_radius(cs):
    """Compute the ``CS`` attribute into a circle radius in osu! pixels.

    Parameters
    ----------
    cs : float
        The circle size.

    Returns
    -------
    radius : float
        The radius in osu! pixels.
    """
    return (512 / 16) * (1 - 0.7 * (cs - 5) / 5)


class HitWindows(namedtuple('HitWindows', 'hit_300, hit_100, hit_50')):
    """Times to hit an object at various accuracies

    Parameters
    ----------
    hit_300 : float
        The maximum number of milliseconds away from exactly on time a hit
        can be to still be a 300
    hit_100 : float
        The maximum number of milliseconds away from exactly on time a hit
        can be to still be a 100
    hit_50 : float
        The maximum number of milliseconds away from exactly on time a hit
        can be to still be a 50

    Notes
    -----
    A hit further than the ``hit_50`` value away from the time of a hit object
    is a miss.
    """


def od_to_ms(od):
    """Convert an overall difficulty value into milliseconds to hit an object
    at various accuracies in osu!standard.

    Parameters
    ----------
    od : float
        The overall difficulty.

    Returns
    -------
    hw : HitWindows
        A namedtuple of numbers of milliseconds to hit an object at different
        accuracies.
    """
    return HitWindows(
        hit_300=(159 - 12 * od) / 2,
        hit_100=(279 - 16 * od) / 2,
        hit_50=(399 - 20 * od) / 2,
    )


def droid_od_to_ms(od, precise=False):
    """Convert an overall difficulty value into the osu!droid hit windows.

    Parameters
    ----------
    od : float
        The overall difficulty.
    precise : bool, optional
        Use the tighter windows of the Precise mod.

    Returns
    -------
    hw : HitWindows
        A namedtuple of numbers of milliseconds to hit an object at different
        accuracies.
    """
    if precise:
        return HitWindows(
            hit_300=55 + 6 * (5 - od),
            hit_100=120 + 8 * (5 - od),
            hit_50=180 + 10 * (5 - od),
        )

    return HitWindows(
        hit_300=75 + 5 * (5 - od),
        hit_100=150 + 10 * (5 - od),
        hit_50=250 + 10 * (5 - od),
    )


def droid_ms_300_to_od(ms, precise=False):
    """Convert the osu!droid 300 window into an OD value.

    See Also
    --------
    :func:`starcalc.mod.droid_od_to_ms`
    """
    if precise:
        return 5 - (ms - 55) / 6
    return 5 - (ms - 75) / 5
