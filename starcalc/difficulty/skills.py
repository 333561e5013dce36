from abc import ABCMeta, abstractmethod
import math

import numpy as np

from .evaluators import evaluate_aim, evaluate_flashlight, evaluate_tap
from ..mod import ModSet
from ..utils import lerp


class Skill(metaclass=ABCMeta):
    """A difficulty dimension which processes difficulty hit objects in
    order and reduces them to a single difficulty value.

    Parameters
    ----------
    mods : iterable[Mod]
        The mods in use.
    """
    def __init__(self, mods):
        self.mods = ModSet(mods)

    @abstractmethod
    def process(self, current):
        """Process the next difficulty hit object.

        Objects must be processed exactly once each, in index order.
        """
        raise NotImplementedError('process')

    @abstractmethod
    def difficulty_value(self):
        """The difficulty of everything processed so far.
        """
        raise NotImplementedError('difficulty_value')


class StrainSkill(Skill):
    """A skill which accumulates decaying strain and samples its peak in
    fixed length sections.

    Notes
    -----
    Sections are aligned to multiples of ``section_length``. Each section's
    peak starts from the strain carried over from the previous object, so a
    gap in the map produces sections holding the decayed strain rather than
    zero.

    Subclasses define the strain an object adds with :meth:`strain_of`, the
    tunables below may be overridden by subclassing.
    """
    #: The length of a section in milliseconds.
    section_length = 400
    #: The number of the highest section peaks which are reduced.
    reduced_section_count = 10
    #: The multiplier applied to the highest section peak.
    reduced_section_baseline = 0.75
    #: The geometric weight of each successive peak.
    decay_weight = 0.9
    #: The portion of the strain that remains after one second.
    strain_decay_base = 0.15
    #: The multiplier applied to every evaluated contribution.
    skill_multiplier = 1.0

    def __init__(self, mods):
        super().__init__(mods)
        self.object_strains = []
        self._strain_peaks = []
        self._current_section_peak = 0.0
        self._current_section_end = 0.0
        self._current_strain = 0.0

    def process(self, current):
        # the first object starts the section which contains it
        if current.index == 0:
            self._current_section_end = (
                math.ceil(current.start_time / self.section_length) *
                self.section_length
            )

        while current.start_time > self._current_section_end:
            self._strain_peaks.append(self._current_section_peak)
            self._current_section_peak = self.calculate_initial_strain(
                self._current_section_end,
                current,
            )
            self._current_section_end += self.section_length

        self._current_section_peak = max(
            self.strain_value_at(current),
            self._current_section_peak,
        )

    @property
    def current_strain_peaks(self):
        """The peak strain of every section, including the open one.
        """
        return [*self._strain_peaks, self._current_section_peak]

    def strain_decay(self, ms):
        return self.strain_decay_base ** (ms / 1000)

    @abstractmethod
    def strain_of(self, current):
        """The strain added by an object before the skill multiplier.
        """
        raise NotImplementedError('strain_of')

    def strain_value_at(self, current):
        """Decay the running strain to ``current`` and add its contribution.

        Returns
        -------
        strain : float
            The strain at ``current``.
        """
        self._current_strain *= self.strain_decay(current.delta_time)
        self._current_strain += self.strain_of(current) * self.skill_multiplier
        self.object_strains.append(self._current_strain)
        return self._current_strain

    def calculate_initial_strain(self, time, current):
        """The strain carried into a section starting at ``time``.
        """
        return self._current_strain * self.strain_decay(
            time - current.previous(0).start_time,
        )

    def difficulty_value(self):
        peaks = np.array(self.current_strain_peaks, dtype=np.float64)
        peaks = -np.sort(-peaks[peaks > 0])

        # the hardest sections are reduced the most
        count = min(len(peaks), self.reduced_section_count)
        scale = np.log10(lerp(
            1,
            10,
            np.clip(np.arange(count) / self.reduced_section_count, 0, 1),
        ))
        peaks[:count] *= lerp(self.reduced_section_baseline, 1, scale)

        peaks = -np.sort(-peaks)
        weights = self.decay_weight ** np.arange(len(peaks))
        return float(np.sum(peaks * weights))

    def count_difficult_strains(self):
        """The number of objects weighted by how close their strain is to
        the top strain of the map.
        """
        if not self.object_strains:
            return 0.0

        # the top strain if every strain was identical
        consistent_top_strain = self.difficulty_value() / 10
        if consistent_top_strain == 0:
            return float(len(self.object_strains))

        strains = np.array(self.object_strains, dtype=np.float64)
        return float(np.sum(
            1.1 / (1 + np.exp(-10 * (strains / consistent_top_strain - 0.88))),
        ))


class Aim(StrainSkill):
    """The skill required to move the cursor between objects.

    Parameters
    ----------
    mods : iterable[Mod]
        The mods in use.
    with_sliders : bool
        Whether to count the movement on sliders.
    """
    strain_decay_base = 0.15
    skill_multiplier = 26.25

    def __init__(self, mods, with_sliders):
        super().__init__(mods)
        self.with_sliders = with_sliders

    def strain_of(self, current):
        return evaluate_aim(current, self.with_sliders)


class Tap(StrainSkill):
    """The skill required to tap objects in time.

    Parameters
    ----------
    mods : iterable[Mod]
        The mods in use.
    great_window : float
        The full width of the great hit window in scaled milliseconds.
    """
    strain_decay_base = 0.3
    skill_multiplier = 1400

    def __init__(self, mods, great_window):
        super().__init__(mods)
        self.great_window = great_window

    def strain_of(self, current):
        return evaluate_tap(current, self.great_window)


class Flashlight(StrainSkill):
    """The skill required to memorise and hit objects under restricted
    vision.

    Parameters
    ----------
    mods : iterable[Mod]
        The mods in use.
    with_sliders : bool
        Whether to reward slider velocity and length.
    """
    strain_decay_base = 0.15
    skill_multiplier = 0.052

    def __init__(self, mods, with_sliders):
        super().__init__(mods)
        self.with_sliders = with_sliders

    def strain_of(self, current):
        return evaluate_flashlight(current, self.mods, self.with_sliders)

    def difficulty_value(self):
        return float(sum(self.current_strain_peaks))
