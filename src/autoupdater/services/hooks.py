"""Hook execution for download, verification, upgrade and abort steps."""

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from autoupdater.models.settings import RunContext


class HookRunner(ABC):
    """Capabilities the orchestrator needs from the outside world."""

    @abstractmethod
    def download(self, mirror: str, context: RunContext) -> bool:
        """Fetch the manifest and image from ``mirror``."""

    @abstractmethod
    def verify(self, mirror: str, context: RunContext) -> bool:
        """Check the downloaded manifest carries enough trusted signatures."""

    @abstractmethod
    def upgrade(self, mirror: str, context: RunContext) -> bool:
        """Apply the verified image."""

    @abstractmethod
    def abort(self, mirror: str, context: RunContext) -> None:
        """Clean up after a failed attempt on ``mirror``."""


class ProcessHookRunner(HookRunner):
    """Runs hook executables from the configured hook directories.

    Each directory is processed run-parts style: executables in
    lexicographic order, stopping at the first non-zero exit status.
    """

    MANIFEST_NAME = "manifest"
    SIGNATURE_NAME = "manifest.sig"

    def __init__(self):
        self.logger = logging.getLogger("autoupdater.hooks")

    def download(self, mirror: str, context: RunContext) -> bool:
        try:
            context.work_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Unable to create work directory {context.work_dir}: {e}")
            return False
        return self.run_parts(context.download_dir, mirror, context)

    def verify(self, mirror: str, context: RunContext) -> bool:
        manifest = context.work_dir / self.MANIFEST_NAME
        signatures = self._read_signatures(context.work_dir / self.SIGNATURE_NAME)
        if not signatures:
            self.logger.warning(f"No signatures found for manifest from {mirror}")
            return False

        command = [context.verifier, "-n", str(context.good_signatures)]
        for key in context.pubkeys:
            command += ["-p", key]
        for signature in signatures:
            command += ["-s", signature]
        command.append(str(manifest))

        return self._run(command, mirror, context)

    def upgrade(self, mirror: str, context: RunContext) -> bool:
        return self.run_parts(context.upgrade_dir, mirror, context)

    def abort(self, mirror: str, context: RunContext) -> None:
        if not self.run_parts(context.abort_dir, mirror, context):
            self.logger.warning(f"Abort hooks failed for mirror {mirror}")

    def run_parts(self, directory: Path, mirror: str, context: RunContext) -> bool:
        """Run every executable in ``directory`` until one fails.

        Returns:
            True if all hooks exited 0 (or there were none), False otherwise
        """
        for hook in self.list_hooks(directory):
            if not self._run([str(hook), mirror], mirror, context):
                return False
        return True

    def list_hooks(self, directory: Path) -> list[Path]:
        """Executable, non-hidden files of ``directory`` in lexicographic order."""
        if not directory.is_dir():
            self.logger.debug(f"Hook directory {directory} does not exist")
            return []

        hooks = []
        for entry in sorted(directory.iterdir(), key=lambda p: p.name):
            if entry.name.startswith("."):
                continue
            if entry.is_file() and os.access(entry, os.X_OK):
                hooks.append(entry)
        return hooks

    def hook_environment(self, mirror: str, context: RunContext) -> dict[str, str]:
        env = dict(os.environ)
        env.update(
            {
                "AUTOUPDATER_MIRROR": mirror,
                "AUTOUPDATER_BRANCH": context.branch,
                "AUTOUPDATER_OLD_VERSION": context.old_version or "",
                "AUTOUPDATER_WORKDIR": str(context.work_dir),
                "AUTOUPDATER_FALLBACK": "1" if context.fallback else "0",
            }
        )
        return env

    def _run(self, command: list[str], mirror: str, context: RunContext) -> bool:
        name = Path(command[0]).name
        self.logger.debug(f"Running {name} for mirror {mirror}")

        try:
            result = subprocess.run(
                command,
                env=self.hook_environment(mirror, context),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=context.hook_timeout,
            )
        except subprocess.TimeoutExpired:
            self.logger.error(f"{name} timed out after {context.hook_timeout}s")
            return False
        except OSError as e:
            self.logger.error(f"Failed to run {name}: {e}")
            return False

        output = result.stdout.decode(errors="replace").strip()
        if output:
            self.logger.debug(f"{name} output: {output}")

        if result.returncode != 0:
            self.logger.warning(
                f"{name} failed: exit code {result.returncode}, "
                f"stderr: {result.stderr.decode(errors='replace').strip()}"
            )
            return False

        return True

    def _read_signatures(self, path: Path) -> Optional[list[str]]:
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError):
            return None
        return [line.strip() for line in lines if line.strip()]
