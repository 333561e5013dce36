from abc import ABCMeta, abstractmethod
import logging
import math

from .attributes import DroidDifficultyAttributes, TimedDifficultyAttributes
from .hit_object import create_difficulty_hit_objects
from .skills import Aim, Flashlight, Tap
from ..beatmap import HitObjectCounts, PlayableBeatmap, combo_of
from ..cancellation import check_cancelled
from ..game_mode import GameMode
from ..mod import (
    ModAutopilot,
    ModDifficultyAdjust,
    ModEasy,
    ModFlashlight,
    ModHardRock,
    ModHidden,
    ModMirror,
    ModPrecise,
    ModRateAdjust,
    ModReallyEasy,
    ModRelax,
    ModSet,
    ModSmallCircle,
    ModTraceable,
    ar_to_ms,
    droid_ms_300_to_od,
    ms_to_ar,
)


log = logging.getLogger(__name__)


#: The epoch time in milliseconds of the last change to the difficulty
#: calculation.
VERSION = 1746800175000


class ProgressiveCalculationBeatmap(HitObjectCounts):
    """A view of a playable beatmap which grows one hit object at a time.

    Parameters
    ----------
    base_beatmap : PlayableBeatmap
        The beatmap being calculated.
    """
    def __init__(self, base_beatmap):
        self.base_beatmap = base_beatmap
        self.mode = base_beatmap.mode
        self.mods = base_beatmap.mods
        self.difficulty = base_beatmap.difficulty
        self.hit_window = base_beatmap.hit_window
        self.speed_multiplier = base_beatmap.speed_multiplier
        self.hit_objects = []
        self.max_combo = 0

    def add(self, hit_object):
        self.hit_objects.append(hit_object)
        self.max_combo += combo_of(hit_object)

    def remove(self, hit_object):
        """Remove a hit object.

        Returns
        -------
        removed : bool
            Whether the object was in this beatmap.
        """
        try:
            self.hit_objects.remove(hit_object)
        except ValueError:
            return False

        self.max_combo -= combo_of(hit_object)
        return True

    def __repr__(self):
        return (
            f'<{type(self).__qualname__}: {len(self.hit_objects)}/'
            f'{len(self.base_beatmap.hit_objects)} objects>'
        )


class DifficultyCalculator(metaclass=ABCMeta):
    """Calculates the star rating of beatmaps.

    Subclasses choose the skills, how they are combined and the game mode the
    beatmap is converted to.
    """
    #: The multiplier turning a skill's difficulty value into a rating.
    difficulty_multiplier = 0.0675

    #: The game mode beatmaps are converted to.
    mode = GameMode.droid

    #: The mod types which can change the star rating.
    difficulty_adjustment_mods = (
        ModRelax,
        ModAutopilot,
        ModEasy,
        ModReallyEasy,
        ModMirror,
        ModHardRock,
        ModHidden,
        ModFlashlight,
        ModDifficultyAdjust,
        ModRateAdjust,
    )

    def retain_difficulty_adjustment_mods(self, mods):
        """Keep only the mods which change the star rating.

        Parameters
        ----------
        mods : iterable[Mod] or None
            The mods to filter.

        Returns
        -------
        mods : ModSet
            The mods which change the star rating.
        """
        return ModSet(
            mod for mod in (mods or ())
            if isinstance(mod, self.difficulty_adjustment_mods)
        )

    def _playable(self, beatmap, mods, cancellation_token):
        if isinstance(beatmap, PlayableBeatmap):
            if mods is not None:
                raise ValueError(
                    'mods cannot be passed with a PlayableBeatmap, they are'
                    ' already applied',
                )
            return beatmap

        return self.create_playable_beatmap(beatmap, mods, cancellation_token)

    def calculate(self, beatmap, mods=None, *, cancellation_token=None):
        """Calculate the difficulty of a beatmap.

        Parameters
        ----------
        beatmap : Beatmap or PlayableBeatmap
            The beatmap to calculate.
        mods : iterable[Mod], optional
            The mods to apply to a :class:`~starcalc.beatmap.Beatmap`.
        cancellation_token : CancellationToken, optional
            Polled between objects and skills.

        Returns
        -------
        attributes : DroidDifficultyAttributes
            The difficulty of the beatmap.

        Raises
        ------
        CalculationCancelled
            Raised when ``cancellation_token`` is cancelled.
        """
        beatmap = self._playable(beatmap, mods, cancellation_token)
        if not beatmap.hit_objects:
            return self.create_empty_attributes(beatmap)

        skills = self.create_skills(beatmap)
        objects = self.create_difficulty_hit_objects(
            beatmap,
            cancellation_token,
        )

        for obj in objects:
            for skill in skills:
                check_cancelled(cancellation_token)
                skill.process(obj)

        attributes = self.create_difficulty_attributes(
            beatmap,
            skills,
            objects,
        )
        log.debug(
            'rated %d objects with %r: %.2f stars',
            len(objects),
            beatmap.mods,
            attributes.star_rating,
        )
        return attributes

    def calculate_timed(self, beatmap, mods=None, *, cancellation_token=None):
        """Calculate the difficulty of every prefix of a beatmap.

        Parameters
        ----------
        beatmap : Beatmap or PlayableBeatmap
            The beatmap to calculate.
        mods : iterable[Mod], optional
            The mods to apply to a :class:`~starcalc.beatmap.Beatmap`.
        cancellation_token : CancellationToken, optional
            Polled between objects and skills.

        Returns
        -------
        attributes : list[TimedDifficultyAttributes]
            One entry per hit object in time order, each describing the
            beatmap up to that object's end time.

        Raises
        ------
        CalculationCancelled
            Raised when ``cancellation_token`` is cancelled.
        """
        if not beatmap.hit_objects:
            return []

        beatmap = self._playable(beatmap, mods, cancellation_token)
        skills = self.create_skills(beatmap)
        progressive_beatmap = ProgressiveCalculationBeatmap(beatmap)
        objects = self.create_difficulty_hit_objects(
            beatmap,
            cancellation_token,
        )

        out = []
        current_index = 0
        for hit_object in beatmap.hit_objects:
            progressive_beatmap.add(hit_object)

            # objects which end after the newest one are fed later
            while (current_index < len(objects) and
                   objects[current_index].obj.end_time <=
                   hit_object.end_time):
                for skill in skills:
                    check_cancelled(cancellation_token)
                    skill.process(objects[current_index])
                current_index += 1

            out.append(TimedDifficultyAttributes(
                hit_object.end_time,
                self.create_difficulty_attributes(
                    progressive_beatmap,
                    skills,
                    objects[:current_index],
                ),
            ))

        return out

    def calculate_rating(self, skill):
        """The rating of a skill which has processed a beatmap.
        """
        return math.sqrt(skill.difficulty_value()) * self.difficulty_multiplier

    def create_playable_beatmap(self, beatmap, mods, cancellation_token=None):
        return PlayableBeatmap(
            beatmap,
            self.mode,
            mods,
            cancellation_token=cancellation_token,
        )

    def create_difficulty_hit_objects(self, beatmap, cancellation_token=None):
        return create_difficulty_hit_objects(
            beatmap.hit_objects,
            beatmap.speed_multiplier,
            cancellation_token,
        )

    @abstractmethod
    def create_skills(self, beatmap):
        """Create the skills which process a beatmap.

        Parameters
        ----------
        beatmap : PlayableBeatmap
            The beatmap to calculate.

        Returns
        -------
        skills : list[Skill]
            The skills, processed in order.
        """
        raise NotImplementedError('create_skills')

    @abstractmethod
    def create_difficulty_attributes(self, beatmap, skills, objects):
        """Combine processed skills into difficulty attributes.

        Parameters
        ----------
        beatmap : PlayableBeatmap or ProgressiveCalculationBeatmap
            The (part of the) beatmap that was processed.
        skills : list[Skill]
            The skills returned by :meth:`create_skills`.
        objects : list[DifficultyHitObject]
            The objects the skills processed.
        """
        raise NotImplementedError('create_difficulty_attributes')

    @abstractmethod
    def create_empty_attributes(self, beatmap):
        """Attributes of a beatmap without hit objects.
        """
        raise NotImplementedError('create_empty_attributes')


class DroidDifficultyCalculator(DifficultyCalculator):
    """Calculates osu!droid star ratings.
    """
    difficulty_adjustment_mods = (
        *DifficultyCalculator.difficulty_adjustment_mods,
        ModPrecise,
        ModSmallCircle,
        ModTraceable,
    )

    #: The power of the norm combining the skill performances.
    star_rating_norm = 1.1

    def create_skills(self, beatmap):
        mods = beatmap.mods
        great_window = (
            2 * beatmap.hit_window.hit_300 / beatmap.speed_multiplier
        )
        skills = [
            Aim(mods, with_sliders=True),
            Aim(mods, with_sliders=False),
            Tap(mods, great_window),
        ]

        if ModFlashlight in mods:
            skills.append(Flashlight(mods, with_sliders=True))
            skills.append(Flashlight(mods, with_sliders=False))

        return skills

    @staticmethod
    def _find(skills, cls, **attrs):
        for skill in skills:
            if isinstance(skill, cls) and all(
                    getattr(skill, k) == v for k, v in attrs.items()):
                return skill
        return None

    def _rating(self, skill):
        if skill is None:
            return 0.0
        return self.calculate_rating(skill)

    @staticmethod
    def base_performance(rating):
        """The performance of an aim or tap rating before length bonuses.
        """
        return (5 * max(1, rating / 0.0675) - 4) ** 3 / 100000

    def create_difficulty_attributes(self, beatmap, skills, objects):
        mods = beatmap.mods
        if not objects:
            return self.create_empty_attributes(beatmap)

        aim = self._find(skills, Aim, with_sliders=True)
        aim_rating = self._rating(aim)
        aim_no_sliders_rating = self._rating(
            self._find(skills, Aim, with_sliders=False),
        )
        slider_factor = (
            aim_no_sliders_rating / aim_rating if aim_rating > 0 else 1.0
        )

        tap = self._find(skills, Tap)
        tap_rating = self._rating(tap)

        flashlight_rating = self._rating(
            self._find(skills, Flashlight, with_sliders=True),
        )
        flashlight_no_sliders_rating = self._rating(
            self._find(skills, Flashlight, with_sliders=False),
        )
        flashlight_slider_factor = (
            flashlight_no_sliders_rating / flashlight_rating
            if flashlight_rating > 0 else
            1.0
        )

        if ModRelax in mods:
            aim_rating *= 0.9
            tap_rating = 0.0
            flashlight_rating *= 0.7
        elif ModAutopilot in mods:
            aim_rating = 0.0
            tap_rating *= 0.5
            flashlight_rating *= 0.4

        norm = self.star_rating_norm
        base_performance = (
            self.base_performance(aim_rating) ** norm +
            self.base_performance(tap_rating) ** norm +
            (flashlight_rating ** 2 * 25) ** norm
        ) ** (1 / norm)

        if base_performance > 1e-5:
            star_rating = (
                1.12 ** (1 / 3) *
                0.027 *
                (
                    (100000 / 2 ** (1 / norm) * base_performance) ** (1 / 3) +
                    4
                )
            )
        else:
            star_rating = 0.0

        clock_rate = beatmap.speed_multiplier
        preempt = ar_to_ms(beatmap.difficulty.ar) / clock_rate
        great_window = beatmap.hit_window.hit_300 / clock_rate

        return DroidDifficultyAttributes(
            mods=mods,
            star_rating=star_rating,
            max_combo=beatmap.max_combo,
            aim_difficulty=aim_rating,
            tap_difficulty=tap_rating,
            flashlight_difficulty=flashlight_rating,
            slider_factor=slider_factor,
            flashlight_slider_factor=flashlight_slider_factor,
            aim_difficult_strain_count=aim.count_difficult_strains(),
            tap_difficult_strain_count=tap.count_difficult_strains(),
            approach_rate=ms_to_ar(preempt),
            overall_difficulty=droid_ms_300_to_od(
                great_window,
                precise=ModPrecise in mods,
            ),
            hit_circle_count=beatmap.hit_circle_count,
            slider_count=beatmap.slider_count,
            spinner_count=beatmap.spinner_count,
        )

    def create_empty_attributes(self, beatmap):
        return DroidDifficultyAttributes.empty(beatmap.mods)
