"""Staged-rollout probability for announced updates."""

import logging
import random
import warnings
from pathlib import Path
from typing import Callable, Union

from autoupdater.errors import ClockFaultWarning, UptimeUnavailableError
from autoupdater.models.decision import UpdateDecisionInput

# Below this uptime a wrong clock is assumed to be waiting for NTP
MIN_UPTIME_FOR_CLOCK_FAULT = 600

logger = logging.getLogger("autoupdater.probability")


def read_uptime(path: Union[str, Path] = "/proc/uptime") -> float:
    """Return seconds since boot.

    Raises:
        UptimeUnavailableError: If the uptime file cannot be read or parsed
    """
    try:
        with open(path, "r", encoding="ascii") as f:
            return float(f.read().split()[0])
    except (OSError, ValueError, IndexError) as e:
        raise UptimeUnavailableError(f"unable to determine uptime: {e}")


def update_probability(
    decision: UpdateDecisionInput,
    uptime: Callable[[], float] = read_uptime,
) -> float:
    """Probability in [0, 1] that this device should update now.

    Within the rollout window (``priority`` days after the announcement) the
    probability follows the smoothstep ``3x² - 2x³`` and reaches 1 once the
    window has passed. Fallback mode is a single step one day after the
    window closes.

    A negative elapsed time means either the manifest or the local clock is
    wrong. Nothing sensible can be done about a wrong manifest, so the local
    clock is assumed to be at fault: shortly after boot the run is deferred,
    otherwise the static ``0.75 ** priority`` is used.

    Args:
        decision: Announcement and clock values for this run
        uptime: Seconds-since-boot provider, only consulted on clock fault

    Returns:
        Update probability
    """
    diff = decision.elapsed_seconds
    seconds = decision.window_seconds

    if diff < 0:
        warnings.warn("clock seems to be incorrect.", ClockFaultWarning, stacklevel=2)

        if uptime() < MIN_UPTIME_FOR_CLOCK_FAULT:
            return 0.0

        return 0.75 ** decision.priority

    if decision.fallback:
        return 1.0 if diff >= seconds + 86400 else 0.0

    if diff >= seconds:
        return 1.0

    x = diff / seconds
    return 3 * x * x - 2 * x * x * x


def should_update(probability: float, rng: random.Random) -> bool:
    """Draw once from ``rng`` and compare against ``probability``."""
    draw = rng.random()
    logger.debug(f"Rollout draw {draw:.4f} against probability {probability:.4f}")
    return draw < probability
