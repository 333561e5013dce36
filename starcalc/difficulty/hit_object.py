import logging
import math

from ..beatmap import Slider, SliderRepeat, SliderTick, Spinner
from ..cancellation import check_cancelled
from ..mod import ModHidden
from ..utils import clamp, lazyval


log = logging.getLogger(__name__)


class DifficultyHitObject:
    """A hit object wrapped with the timing and geometry the difficulty
    skills evaluate.

    Parameters
    ----------
    obj : HitObject
        The hit object, with defaults and stacking applied.
    last_obj : HitObject or None
        The hit object before ``obj``.
    clock_rate : float
        The playback rate; all times of this object are scaled by it.
    objects : list[DifficultyHitObject]
        The shared sequence of all difficulty hit objects of the beatmap.
    index : int
        The index of this object in ``objects``.

    Notes
    -----
    Geometric quantities are computed on first access and never change
    afterwards; the hit objects must not be mutated once the graph is built.
    """
    #: The radius every object is scaled to for distance calculations.
    normalised_radius = 50
    #: The lower bound of ``strain_time``.
    min_delta_time = 25
    maximum_slider_radius = normalised_radius * 2.4
    assumed_slider_radius = normalised_radius * 1.8
    #: Objects with a radius below this get a distance bonus.
    small_circle_threshold = 30
    #: The leniency in milliseconds of a slider's tail judgement.
    tail_leniency = -36

    def __init__(self, obj, last_obj, clock_rate, objects, index):
        self.obj = obj
        self.last_obj = last_obj
        self.clock_rate = clock_rate
        self._objects = objects
        self.index = index

        self.start_time = obj.start_time / clock_rate
        self.end_time = obj.end_time / clock_rate

        if last_obj is None:
            self.delta_time = 0
        else:
            self.delta_time = (
                (obj.start_time - last_obj.start_time) / clock_rate
            )

        self.strain_time = max(self.delta_time, self.min_delta_time)

    def __repr__(self):
        return f'<{type(self).__qualname__}: {self.index}, {self.obj!r}>'

    def previous(self, backwards_index):
        """The object ``backwards_index + 1`` places before this one, or
        None.
        """
        index = self.index - (backwards_index + 1)
        if 0 <= index < len(self._objects):
            return self._objects[index]
        return None

    def next(self, forwards_index):
        """The object ``forwards_index + 1`` places after this one, or None.
        """
        index = self.index + forwards_index + 1
        if 0 <= index < len(self._objects):
            return self._objects[index]
        return None

    @lazyval
    def _scaling_factor(self):
        radius = self.obj.difficulty_radius
        if not radius:
            return 1.0

        scaling_factor = self.normalised_radius / radius
        if radius < self.small_circle_threshold:
            small_circle_bonus = (
                min(self.small_circle_threshold - radius, 5) / 50
            )
            scaling_factor *= 1 + small_circle_bonus
        return scaling_factor

    @lazyval
    def _slider_cursor(self):
        """Simulate a lazy cursor following this object's slider.

        Returns
        -------
        end_position : Position
            Where the cursor ends up.
        travel_distance : float
            How far the cursor moved, normalised to ``normalised_radius``.
        travel_time : float
            How long the slider is tracked for in unscaled milliseconds.
        """
        slider = self.obj
        if not isinstance(slider, Slider):
            return slider.difficulty_stacked_end_position, 0.0, 0.0

        tracking_end_time = max(
            slider.end_time + self.tail_leniency,
            slider.start_time + slider.duration / 2,
        )
        nested = list(slider.nested_hit_objects)

        ticks = [ob for ob in nested if isinstance(ob, SliderTick)]
        if ticks and ticks[-1].start_time > tracking_end_time:
            # the tail is judged before the last tick, so the cursor must
            # reach the tail first
            tracking_end_time = ticks[-1].start_time
            last_tick = ticks[-1]
            nested.remove(last_tick)
            nested.append(last_tick)

        travel_time = tracking_end_time - slider.start_time

        if slider.span_duration:
            progress = travel_time / slider.span_duration
        else:
            progress = 0
        if progress % 2 >= 1:
            progress = 1 - progress % 1
        else:
            progress %= 1

        lazy_end_position = (
            slider.curve_position_at(progress) +
            slider.difficulty_stack_offset
        )

        radius = slider.difficulty_radius
        scaling_factor = self.normalised_radius / radius if radius else 1.0
        cursor = slider.difficulty_stacked_position
        travel_distance = 0.0

        for i, movement_object in enumerate(nested[1:], start=1):
            movement = movement_object.difficulty_stacked_position - cursor
            movement_length = scaling_factor * movement.length
            required_movement = self.assumed_slider_radius

            if i == len(nested) - 1:
                # the tail only needs to be reached as far as the lazy end
                lazy_movement = lazy_end_position - cursor
                if lazy_movement.length < movement.length:
                    movement = lazy_movement
                movement_length = scaling_factor * movement.length
            elif isinstance(movement_object, SliderRepeat):
                required_movement = self.normalised_radius

            if movement_length > required_movement:
                ratio = (movement_length - required_movement) / movement_length
                cursor = cursor + movement * ratio
                travel_distance += movement_length * ratio

            if i == len(nested) - 1:
                lazy_end_position = cursor

        return lazy_end_position, travel_distance, travel_time

    @property
    def lazy_end_position(self):
        """Where a lazy cursor leaves this object.
        """
        return self._slider_cursor[0]

    @property
    def lazy_travel_distance(self):
        """The normalised distance a lazy cursor travels on this slider.
        """
        return self._slider_cursor[1]

    @lazyval
    def travel_time(self):
        """The scaled time a lazy cursor spends travelling on this slider.
        """
        if not isinstance(self.obj, Slider):
            return 0.0
        return max(
            self._slider_cursor[2] / self.clock_rate,
            self.min_delta_time,
        )

    def _has_movement(self):
        return not (
            self.last_obj is None or
            isinstance(self.obj, Spinner) or
            isinstance(self.last_obj, Spinner)
        )

    @lazyval
    def lazy_jump_distance(self):
        """The normalised distance from the cursor leaving the previous
        object to this object.
        """
        if not self._has_movement():
            return 0.0

        last_cursor = self.previous(0).lazy_end_position
        scaling_factor = self._scaling_factor
        return (
            self.obj.difficulty_stacked_position * scaling_factor -
            last_cursor * scaling_factor
        ).length

    @lazyval
    def min_jump_time(self):
        """The shortest time the cursor needs to move to this object.
        """
        if not self._has_movement() or not isinstance(self.last_obj, Slider):
            return self.strain_time
        return max(
            self.strain_time - self.previous(0).travel_time,
            self.min_delta_time,
        )

    @lazyval
    def min_jump_distance(self):
        """The shortest normalised distance the cursor needs to move to this
        object, accounting for the follow circle of a previous slider.
        """
        jump_distance = self.lazy_jump_distance
        if not self._has_movement() or not isinstance(self.last_obj, Slider):
            return jump_distance

        tail = self.last_obj.nested_hit_objects[-1]
        tail_jump_distance = (
            (tail.difficulty_stacked_position -
             self.obj.difficulty_stacked_position).length *
            self._scaling_factor
        )
        return max(
            0.0,
            min(
                jump_distance - (
                    self.maximum_slider_radius -
                    self.assumed_slider_radius
                ),
                tail_jump_distance - self.maximum_slider_radius,
            ),
        )

    @lazyval
    def angle(self):
        """The angle in radians at the previous object formed by the cursor
        path of the last three objects, or None.
        """
        if not self._has_movement():
            return None

        last = self.previous(0)
        last_last = self.previous(1)
        if last_last is None or isinstance(last_last.obj, Spinner):
            return None

        v1 = (
            last_last.lazy_end_position -
            self.last_obj.difficulty_stacked_position
        )
        v2 = self.obj.difficulty_stacked_position - last.lazy_end_position

        dot = v1.dot(v2)
        det = v1.x * v2.y - v1.y * v2.x
        return abs(math.atan2(det, dot))

    def opacity_at(self, time, mods):
        """How visible this object is at a point in time.

        Parameters
        ----------
        time : float
            The unscaled time in milliseconds.
        mods : ModSet
            The mods in use.

        Returns
        -------
        opacity : float
            The opacity in the range [0, 1].
        """
        obj = self.obj
        if time > obj.start_time:
            # objects are treated as invisible once they should have been hit
            return 0.0

        fade_in_start_time = obj.start_time - obj.time_preempt
        fade_in_duration = obj.time_fade_in
        if fade_in_duration:
            fade_in = clamp(
                (time - fade_in_start_time) / fade_in_duration,
                0,
                1,
            )
        else:
            fade_in = 1.0

        if ModHidden not in mods:
            return fade_in

        fade_out_start_time = fade_in_start_time + fade_in_duration
        fade_out_duration = (
            obj.time_preempt * ModHidden.fade_out_duration_multiplier
        )
        if fade_out_duration:
            fade_out = clamp(
                (time - fade_out_start_time) / fade_out_duration,
                0,
                1,
            )
        else:
            fade_out = 1.0

        return min(fade_in, 1 - fade_out)

    def is_overlapping(self, consider_distance):
        """Whether this object can be hit together with the previous one.

        Parameters
        ----------
        consider_distance : bool
            Also require the objects to touch.
        """
        if isinstance(self.obj, Spinner):
            return False

        last = self.previous(0)
        if last is None or isinstance(last.obj, Spinner):
            return False

        if self.delta_time >= 5:
            return False

        if consider_distance:
            distance = (
                last.obj.difficulty_stacked_end_position -
                self.obj.difficulty_stacked_position
            ).length
            return distance <= 2 * self.obj.difficulty_radius

        return True


def create_difficulty_hit_objects(hit_objects,
                                  clock_rate,
                                  cancellation_token=None):
    """Build the difficulty hit object graph of a beatmap.

    Parameters
    ----------
    hit_objects : list[HitObject]
        The hit objects in start time order.
    clock_rate : float
        The playback rate.
    cancellation_token : CancellationToken, optional
        Polled before each object.

    Returns
    -------
    objects : list[DifficultyHitObject]
        One difficulty hit object per hit object.

    Raises
    ------
    CalculationCancelled
        Raised when ``cancellation_token`` is cancelled.
    """
    objects = []
    last_obj = None
    for index, obj in enumerate(hit_objects):
        check_cancelled(cancellation_token)
        objects.append(
            DifficultyHitObject(obj, last_obj, clock_rate, objects, index),
        )
        last_obj = obj

    log.debug('created %d difficulty hit objects', len(objects))
    return objects
