"""Conversion between legacy mod encodings and :class:`~starcalc.mod.ModSet`.

Legacy mod strings have the form ``'<characters>|<extra tokens>'``. Every
character of the first part is one mod. The second part holds ``|``
separated tokens:

``x1.25``
    A custom playback rate.
``CS4.0``, ``AR9.5``, ``OD8.0``, ``HP6.0``
    Custom difficulty values, merged into a single
    :class:`~starcalc.mod.ModDifficultyAdjust`.
``FLD0.24``
    The flashlight follow delay, which enables flashlight if needed.
"""
import logging

from .mod import (
    LegacyMod,
    ModAuto,
    ModAutopilot,
    ModCustomSpeed,
    ModDifficultyAdjust,
    ModDoubleTime,
    ModEasy,
    ModFlashlight,
    ModHalfTime,
    ModHardRock,
    ModHidden,
    ModNightCore,
    ModNoFail,
    ModPerfect,
    ModPrecise,
    ModReallyEasy,
    ModRelax,
    ModScoreV2,
    ModSet,
    ModSmallCircle,
    ModSuddenDeath,
    ModTraceable,
)


log = logging.getLogger(__name__)


#: The mod type for each legacy mod that can be converted.
legacy_mod_map = {
    LegacyMod.autoplay: ModAuto,
    LegacyMod.auto_pilot: ModAutopilot,
    LegacyMod.double_time: ModDoubleTime,
    LegacyMod.easy: ModEasy,
    LegacyMod.flashlight: ModFlashlight,
    LegacyMod.half_time: ModHalfTime,
    LegacyMod.hard_rock: ModHardRock,
    LegacyMod.hidden: ModHidden,
    LegacyMod.traceable: ModTraceable,
    LegacyMod.nightcore: ModNightCore,
    LegacyMod.no_fail: ModNoFail,
    LegacyMod.perfect: ModPerfect,
    LegacyMod.precise: ModPrecise,
    LegacyMod.really_easy: ModReallyEasy,
    LegacyMod.relax: ModRelax,
    LegacyMod.scoreV2: ModScoreV2,
    LegacyMod.small_circle: ModSmallCircle,
    LegacyMod.sudden_death: ModSuddenDeath,
}

#: The mod types that can be stored in a legacy mod string, by character.
legacy_storable_mods = {
    mod.droid_char: mod
    for mod in legacy_mod_map.values()
}


def convert_legacy_mods(mods, extra_mod_string=''):
    """Convert legacy mods into a :class:`~starcalc.mod.ModSet`.

    Parameters
    ----------
    mods : int or iterable[LegacyMod]
        The legacy mods, either as a bitmask or as enum members.
    extra_mod_string : str, optional
        The extra tokens, without the leading character part.

    Returns
    -------
    mods : ModSet
        The converted mods.

    Raises
    ------
    ValueError
        Raised when a legacy mod has no counterpart or when an extra token
        holds a malformed number.
    """
    if isinstance(mods, int):
        mods = LegacyMod.split(mods)

    out = ModSet()
    for legacy_mod in mods:
        try:
            mod_type = legacy_mod_map[LegacyMod(legacy_mod)]
        except KeyError:
            raise ValueError(f'cannot find a mod for {legacy_mod!r}')

        out.add(mod_type())

    _parse_extra_mod_string(out, extra_mod_string)
    return out


def convert_mod_string(s):
    """Convert a legacy mod string into a :class:`~starcalc.mod.ModSet`.

    Parameters
    ----------
    s : str or None
        The mod string. ``None`` or an empty string produce an empty set.

    Returns
    -------
    mods : ModSet
        The converted mods.

    Raises
    ------
    ValueError
        Raised when an extra token holds a malformed number.

    Notes
    -----
    Characters that do not name a mod are skipped; strings written by other
    builds of the game may carry characters unknown to this one.
    """
    out = ModSet()
    if not s:
        return out

    characters, _, extra = s.partition('|')
    for c in characters:
        try:
            mod_type = legacy_storable_mods[c]
        except KeyError:
            log.debug('skipping unknown legacy mod character %r', c)
            continue

        out.add(mod_type())

    _parse_extra_mod_string(out, extra)
    return out


def _parse_extra_mod_string(mods, s):
    custom = {}

    for token in s.split('|'):
        if token.startswith('x') and len(token) == 5:
            mods.add(ModCustomSpeed(_parse_float(token, token[1:])))
        elif token.startswith(('CS', 'AR', 'OD', 'HP')):
            custom[token[:2].lower()] = _parse_float(token, token[2:])
        elif token.startswith('FLD'):
            follow_delay = _parse_float(token, token[3:])
            flashlight = mods.of_type(ModFlashlight)
            if flashlight is None:
                flashlight = ModFlashlight()
                mods.add(flashlight)
            flashlight.follow_delay = follow_delay

    if custom:
        mods.add(ModDifficultyAdjust(**custom))


def _parse_float(token, value):
    try:
        return float(value)
    except ValueError:
        raise ValueError(f'malformed number in mod token {token!r}')


def to_mod_string(mods):
    """Encode mods as a legacy mod string.

    Parameters
    ----------
    mods : iterable[Mod]
        The mods to encode.

    Returns
    -------
    s : str
        The legacy mod string. Mods which cannot be stored are left out.

    Raises
    ------
    ValueError
        Raised when a custom rate does not fit the four digit ``x#.##``
        token.
    """
    characters = []
    extra = []

    for mod in mods:
        if legacy_storable_mods.get(mod.droid_char) is type(mod):
            characters.append(mod.droid_char)

        if isinstance(mod, ModCustomSpeed):
            token = f'x{mod.track_rate:.2f}'
            if len(token) != 5 or float(token[1:]) != mod.track_rate:
                raise ValueError(
                    f'rate {mod.track_rate!r} cannot be stored with two'
                    f' decimals below 10',
                )
            extra.append(token)
        elif isinstance(mod, ModDifficultyAdjust):
            names = ('CS', 'AR', 'OD', 'HP')
            for name, value in zip(names, mod._parameters()):
                if value is not None:
                    extra.append(f'{name}{value!r}')
        elif (isinstance(mod, ModFlashlight) and
              mod.follow_delay != ModFlashlight.DEFAULT_FOLLOW_DELAY):
            extra.append(f'FLD{mod.follow_delay!r}')

    out = ''.join(sorted(characters))
    if extra:
        out += '|' + '|'.join(extra)
    return out
