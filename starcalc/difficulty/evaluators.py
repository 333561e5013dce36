"""Evaluators turn a single difficulty hit object into a strain
contribution for one skill.

Every evaluator is a pure function of the object and its predecessors; the
skills own all state.
"""
import math

from ..beatmap import Circle, Slider, Spinner
from ..mod import ModHidden, ModTraceable
from ..utils import clamp


# flashlight
MAX_OPACITY_BONUS = 0.4
HIDDEN_BONUS = 0.2
TRACEABLE_CIRCLE_BONUS = 0.15
TRACEABLE_OBJECT_BONUS = 0.1
MIN_VELOCITY = 0.5
SLIDER_MULTIPLIER = 1.3
MIN_ANGLE_MULTIPLIER = 0.2
FLASHLIGHT_LOOKBACK = 10
ANGLE_REPEAT_TOLERANCE = 0.02

# aim
WIDE_ANGLE_MULTIPLIER = 0.1

# tap
ALMOST_DIAMETER = 90
STREAM_SPACING = 110
SINGLE_SPACING = 125
SPEED_BONUS_THRESHOLD = 75


def evaluate_flashlight(current, mods, with_sliders):
    """Evaluate the difficulty of memorising and hitting an object.

    The difficulty is based on the distance to a number of previous objects,
    how visible the object is, the angle it forms and, for sliders, their
    length and speed.

    Parameters
    ----------
    current : DifficultyHitObject
        The object to evaluate.
    mods : ModSet
        The mods in use.
    with_sliders : bool
        Whether to reward slider velocity and length.

    Returns
    -------
    strain : float
        The non-negative strain contribution.
    """
    obj = current.obj
    if isinstance(obj, Spinner) or current.is_overlapping(True):
        return 0.0

    scaling_factor = 52 / obj.difficulty_radius

    small_dist_nerf = 1.0
    cumulative_strain_time = 0.0
    result = 0.0
    last = current
    angle_repeat_count = 0.0

    for i in range(min(current.index, FLASHLIGHT_LOOKBACK)):
        previous = current.previous(i)
        cumulative_strain_time += last.strain_time

        if not isinstance(previous.obj, Spinner):
            jump_distance = (
                obj.difficulty_stacked_position -
                previous.obj.difficulty_stacked_end_position
            ).length

            # objects which are easily seen inside the flashlight radius
            if i == 0:
                small_dist_nerf = min(1.0, jump_distance / 75)

            # only the first object of a stack counts
            stack_nerf = min(
                1.0,
                previous.lazy_jump_distance / scaling_factor / 25,
            )

            opacity_bonus = 1 + MAX_OPACITY_BONUS * (
                1 - current.opacity_at(previous.obj.start_time, mods)
            )
            result += (
                stack_nerf *
                opacity_bonus *
                scaling_factor *
                jump_distance /
                cumulative_strain_time
            )

            if (previous.angle is not None and
                    current.angle is not None and
                    abs(previous.angle - current.angle) <
                    ANGLE_REPEAT_TOLERANCE):
                # older repeats count less
                angle_repeat_count += max(0.0, 1 - 0.1 * i)

        last = previous

    result = (small_dist_nerf * result) ** 2

    if ModHidden in mods:
        result *= 1 + HIDDEN_BONUS
    elif ModTraceable in mods:
        if isinstance(obj, Circle):
            result *= 1 + TRACEABLE_CIRCLE_BONUS
        else:
            result *= 1 + TRACEABLE_OBJECT_BONUS

    result *= (
        MIN_ANGLE_MULTIPLIER +
        (1 - MIN_ANGLE_MULTIPLIER) / (angle_repeat_count + 1)
    )

    slider_bonus = 0.0
    if with_sliders and isinstance(obj, Slider):
        # undo the size scaling to get the real travel distance
        pixel_travel_distance = current.lazy_travel_distance / scaling_factor

        slider_bonus = max(
            0.0,
            pixel_travel_distance / current.travel_time - MIN_VELOCITY,
        ) ** 0.5
        slider_bonus *= pixel_travel_distance

        if obj.repeat_count > 0:
            slider_bonus /= obj.repeat_count + 1

    return result + slider_bonus * SLIDER_MULTIPLIER


def evaluate_aim(current, with_sliders):
    """Evaluate the difficulty of moving the cursor to an object.

    Parameters
    ----------
    current : DifficultyHitObject
        The object to evaluate.
    with_sliders : bool
        Whether to reward the cursor movement on the previous slider.

    Returns
    -------
    strain : float
        The non-negative strain contribution.
    """
    last = current.previous(0)
    if (isinstance(current.obj, Spinner) or
            last is None or
            isinstance(last.obj, Spinner)):
        return 0.0

    result = current.lazy_jump_distance ** 0.99 / current.strain_time

    if with_sliders and isinstance(last.obj, Slider):
        travel_velocity = last.lazy_travel_distance ** 0.99 / last.travel_time
        movement_velocity = (
            current.min_jump_distance ** 0.99 / current.min_jump_time
        )
        result = max(result, travel_velocity + movement_velocity)

    angle = current.angle
    if angle is not None:
        wide_angle = clamp(angle, math.pi / 3, 5 * math.pi / 6) - math.pi / 3
        result *= 1 + WIDE_ANGLE_MULTIPLIER * math.sin(wide_angle) ** 2

    return result


def spacing_weight(distance):
    """The tapping difficulty of a distance between two objects.

    Parameters
    ----------
    distance : float
        The normalised jump distance.

    Returns
    -------
    weight : float
        The weight in the range [0.95, 2.5].
    """
    if distance > SINGLE_SPACING:
        return 2.5
    elif distance > STREAM_SPACING:
        return (
            1.6 +
            0.9 *
            (distance - STREAM_SPACING) /
            (SINGLE_SPACING - STREAM_SPACING)
        )
    elif distance > ALMOST_DIAMETER:
        return (
            1.2 +
            0.4 *
            (distance - ALMOST_DIAMETER) /
            (STREAM_SPACING - ALMOST_DIAMETER)
        )
    elif distance > ALMOST_DIAMETER / 2:
        return (
            0.95 +
            0.25 *
            (distance - ALMOST_DIAMETER / 2) /
            (ALMOST_DIAMETER / 2)
        )
    return 0.95


def evaluate_tap(current, great_window):
    """Evaluate the difficulty of tapping an object.

    Parameters
    ----------
    current : DifficultyHitObject
        The object to evaluate.
    great_window : float
        The full width of the great hit window in scaled milliseconds.

    Returns
    -------
    strain : float
        The non-negative strain contribution.
    """
    if isinstance(current.obj, Spinner) or current.index == 0:
        return 0.0

    strain_time = current.strain_time
    if great_window:
        # taps much faster than the hit window can be merged together
        strain_time /= clamp((strain_time / great_window) / 0.93, 0.92, 1)

    speed_bonus = 1.0
    if strain_time < SPEED_BONUS_THRESHOLD:
        speed_bonus += 0.75 * ((SPEED_BONUS_THRESHOLD - strain_time) / 40) ** 2

    distance = current.lazy_jump_distance
    last = current.previous(0)
    if isinstance(last.obj, Slider):
        distance += last.lazy_travel_distance

    return spacing_weight(distance) * speed_bonus / strain_time
