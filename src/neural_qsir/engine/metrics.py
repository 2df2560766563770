import logging
import typing as tp
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionPoint:
    """
    First observation index from which R_e stays below 1 until the end of the horizon.
    """

    index: int
    time: float
    multiple_crossings: bool


def effective_reproduction_number(
    trajectory, quarantine, beta: float, gamma: float, population: float
) -> np.ndarray:
    """
    R_e(t) = beta / (gamma + Q(t)) * S(t) / N.

    Args:
        trajectory: States (S, I, R, Q), shape (T, 4).
        quarantine: Quarantine strength along the trajectory, shape (T,).
        beta (float): Transmission rate.
        gamma (float): Recovery rate.
        population (float): Population size N.

    Returns:
        np.ndarray: R_e at every time point, shape (T,).
    """
    trajectory = np.asarray(trajectory, dtype=float)
    quarantine = np.asarray(quarantine, dtype=float)
    if trajectory.ndim != 2 or trajectory.shape[1] != 4:
        raise ValueError(f"Trajectory must have shape (T, 4), got {trajectory.shape}")
    if quarantine.shape != trajectory.shape[:1]:
        raise ValueError(
            f"Quarantine series of shape {quarantine.shape} does not match "
            f"trajectory of shape {trajectory.shape}"
        )

    susceptible_fraction = trajectory[:, 0] / population
    with np.errstate(divide="ignore"):
        return beta / (gamma + quarantine) * susceptible_fraction


def transition_point(t, reproduction) -> tp.Optional[TransitionPoint]:
    """
    Locate the sustained crossing of R_e below 1.

    The transition point is the earliest index such that R_e < 1 there and at
    every later observation. Dips below 1 that recover before it are reported
    through ``multiple_crossings``; if R_e ends the horizon at or above 1 there is
    no transition point.

    Args:
        t: Observation times, shape (T,).
        reproduction: R_e at the observation times, shape (T,).

    Returns:
        TransitionPoint | None: The transition point, or None if undefined.
    """
    t = np.asarray(t, dtype=float)
    reproduction = np.asarray(reproduction, dtype=float)
    if t.shape != reproduction.shape:
        raise ValueError(
            f"Times {t.shape} and reproduction numbers {reproduction.shape} differ in shape"
        )

    below = reproduction < 1.0
    if below.size == 0 or not below[-1]:
        if np.any(below):
            logger.warning(
                "R_e dips below 1 but is not below 1 at the end of the horizon; "
                "transition point undefined"
            )
        return None

    at_or_above = np.flatnonzero(~below)
    index = 0 if at_or_above.size == 0 else int(at_or_above[-1]) + 1
    multiple_crossings = bool(np.any(below[:index]))
    if multiple_crossings:
        logger.warning(
            f"R_e crosses 1 several times; reporting the sustained crossing at t={t[index]}"
        )

    return TransitionPoint(
        index=index, time=float(t[index]), multiple_crossings=multiple_crossings
    )


def loss_trend(losses: tp.Sequence[float], window: int) -> np.ndarray:
    """
    Mean loss over consecutive, non-overlapping windows. A trailing partial window is dropped.
    """
    if window < 1:
        raise ValueError(f"window must be positive, got {window}")
    losses = np.asarray(losses, dtype=float)
    num_windows = len(losses) // window
    if num_windows == 0:
        return np.empty(0)
    return losses[: num_windows * window].reshape(num_windows, window).mean(axis=1)


def is_non_increasing(trend: np.ndarray, rtol: float = 0.0) -> bool:
    """
    True if no windowed mean exceeds its predecessor by more than ``rtol``.
    """
    trend = np.asarray(trend, dtype=float)
    return bool(np.all(trend[1:] <= trend[:-1] * (1.0 + rtol)))
