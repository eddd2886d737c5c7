"""Top-level control flow of a single autoupdater run."""

import logging
import random
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from autoupdater.errors import NoUsableMirrorError
from autoupdater.models.decision import UpdateDecisionInput
from autoupdater.models.settings import RunContext
from autoupdater.models.status import AttemptOutcome, UpdateResult
from autoupdater.services.hooks import HookRunner
from autoupdater.services.lock import LockManager
from autoupdater.services.mirrors import MirrorSelector
from autoupdater.services.probability import read_uptime, should_update, update_probability


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def seeded_random() -> random.Random:
    """RNG seeded from the high-resolution monotonic clock."""
    return random.Random(time.monotonic_ns())


class Orchestrator:
    """Decides whether to update, takes the run lock and tries mirrors.

    Run sequence:
    enabled? → decide (unless forced) → lock → for each random mirror:
    download → verify → upgrade, aborting and moving on after any failure.
    """

    def __init__(
        self,
        context: RunContext,
        hooks: HookRunner,
        lock_manager: Optional[LockManager] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utc_now,
        uptime: Callable[[], float] = read_uptime,
    ):
        """Initialize orchestrator.

        Args:
            context: Immutable run settings
            hooks: Download/verify/upgrade/abort implementation
            lock_manager: Run lock (defaults to one on context.lock_file)
            rng: Random source for the rollout draw and mirror order
            clock: Current-time provider
            uptime: Seconds-since-boot provider
        """
        self.logger = logging.getLogger("autoupdater.orchestrator")
        self.context = context
        self.hooks = hooks
        self.lock_manager = lock_manager or LockManager(context.lock_file)
        self.rng = rng or seeded_random()
        self.clock = clock
        self.uptime = uptime
        self.attempts: list[tuple[str, AttemptOutcome]] = []

    def run(self) -> UpdateResult:
        """Execute one run.

        Returns:
            UPDATED, DISABLED, SKIPPED or NOT_ANNOUNCED

        Raises:
            LockContentionError: If another instance is running
            UptimeUnavailableError: If the clock looks wrong and uptime is unknown
            NoUsableMirrorError: If every mirror failed
        """
        ctx = self.context

        if not ctx.enabled and not ctx.force:
            self.logger.info("autoupdater is disabled")
            return UpdateResult.DISABLED

        if not ctx.force:
            result = self.decide()
            if result is not None:
                return result

        with self.lock_manager.acquire():
            return self._try_mirrors()

    def decide(self) -> Optional[UpdateResult]:
        """Rollout check; returns a terminal result if the run should stop here."""
        announcement = self.context.announcement
        if announcement is None:
            self.logger.info("No update announced, nothing to do")
            return UpdateResult.NOT_ANNOUNCED

        decision = UpdateDecisionInput(
            announced_at=announcement.date,
            priority=announcement.priority,
            now=self.clock(),
            fallback=self.context.fallback,
        )
        probability = update_probability(decision, uptime=self.uptime)

        if not should_update(probability, self.rng):
            self.logger.info(
                f"Skipping update this run (probability {probability:.3f})"
            )
            return UpdateResult.SKIPPED

        self.logger.info(f"Proceeding with update (probability {probability:.3f})")
        return None

    def attempt(self, mirror: str) -> AttemptOutcome:
        """Run download, verify and upgrade against one mirror."""
        ctx = self.context

        if not self.hooks.download(mirror, ctx):
            return AttemptOutcome.DOWNLOAD_FAILED
        if not self.hooks.verify(mirror, ctx):
            return AttemptOutcome.VERIFICATION_FAILED
        if not self.hooks.upgrade(mirror, ctx):
            return AttemptOutcome.APPLY_FAILED
        return AttemptOutcome.SUCCESS

    def _try_mirrors(self) -> UpdateResult:
        selector = MirrorSelector(self.context.mirrors, self.rng)

        for mirror in selector:
            self.logger.info(f"Trying mirror {mirror} ({len(selector)} left)")
            outcome = self.attempt(mirror)
            self.attempts.append((mirror, outcome))

            if outcome is AttemptOutcome.SUCCESS:
                self.logger.info(f"Update from {mirror} applied successfully")
                return UpdateResult.UPDATED

            self.logger.warning(f"Mirror {mirror} failed: {outcome.value}")
            self.hooks.abort(mirror, self.context)

        self.logger.error("no usable mirror found")
        raise NoUsableMirrorError(len(self.attempts))
