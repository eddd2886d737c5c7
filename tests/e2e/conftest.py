"""E2E test configuration and fixtures."""

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest


@pytest.fixture(autouse=True)
def reset_cli_logging():
    """Drop handlers the CLI attached so each run logs to its own streams."""
    yield
    logging.captureWarnings(False)
    for name in ("autoupdater", "py.warnings"):
        lg = logging.getLogger(name)
        for h in list(lg.handlers):
            h.close()
            lg.removeHandler(h)


@pytest.fixture
def device(tmp_path, script):
    """A fake device: config file, hook directories and a verifier.

    Download hooks record each attempt in ``work/attempts`` and succeed
    from the attempt number in ``work/succeed_from`` onwards (never if the
    file is absent). Abort and upgrade hooks leave traces in ``work``.
    """
    hook_dir = tmp_path / "hooks"
    work_dir = tmp_path / "work"
    work_dir.mkdir()

    script(
        hook_dir / "download.d" / "10-fetch",
        'n=$(wc -l < "$AUTOUPDATER_WORKDIR/attempts" 2>/dev/null || echo 0)\n'
        'n=$((n + 1))\n'
        'echo "$1" >> "$AUTOUPDATER_WORKDIR/attempts"\n'
        'from=$(cat "$AUTOUPDATER_WORKDIR/succeed_from" 2>/dev/null || echo 0)\n'
        '[ "$from" -gt 0 ] && [ "$n" -ge "$from" ] || exit 1\n'
        'echo "BRANCH=$AUTOUPDATER_BRANCH" > "$AUTOUPDATER_WORKDIR/manifest"\n'
        'echo "good-signature" > "$AUTOUPDATER_WORKDIR/manifest.sig"',
    )
    script(hook_dir / "abort.d" / "10-cleanup", 'echo "$1" >> "$AUTOUPDATER_WORKDIR/aborted"')
    script(hook_dir / "upgrade.d" / "10-sysupgrade", 'echo "$1" > "$AUTOUPDATER_WORKDIR/upgraded"')
    verifier = script(
        tmp_path / "bin" / "verifier",
        'for last; do :; done\n[ -f "$last" ] && [ ! -f "$(dirname "$last")/reject" ]',
    )

    class Device:
        def __init__(self):
            self.tmp_path = tmp_path
            self.work_dir = work_dir
            self.lock_file = tmp_path / "autoupdater.lock"
            self.mirrors = [f"http://mirror-{i}.example/" for i in range(4)]
            self.settings = {
                "enabled": True,
                "branch": "stable",
                "lock_file": str(self.lock_file),
                "hook_dir": str(hook_dir),
                "work_dir": str(work_dir),
                "verifier": str(verifier),
                "hook_timeout": 30,
            }

        def succeed_from(self, attempt):
            (work_dir / "succeed_from").write_text(f"{attempt}\n")

        def reject_signatures(self):
            (work_dir / "reject").write_text("")

        def announce(self, days_ago, priority=1.0):
            path = tmp_path / "announcement.json"
            date = datetime.now(timezone.utc) - timedelta(days=days_ago)
            path.write_text(json.dumps({"date": date.isoformat(), "priority": priority}))
            self.settings["announcement_file"] = str(path)

        def write_config(self, **settings):
            self.settings.update(settings)
            path = tmp_path / "autoupdater.json"
            path.write_text(
                json.dumps(
                    {
                        "settings": self.settings,
                        "branches": {
                            "stable": {
                                "mirrors": self.mirrors,
                                "pubkeys": ["key-1", "key-2"],
                                "good_signatures": 1,
                            },
                            "experimental": {
                                "mirrors": ["http://experimental.example/"],
                                "pubkeys": ["key-3"],
                                "good_signatures": 1,
                            },
                        },
                    }
                )
            )
            return path

        def lines(self, name):
            path = work_dir / name
            return path.read_text().splitlines() if path.exists() else []

    return Device()
