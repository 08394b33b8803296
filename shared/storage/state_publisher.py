"""
Atomic JSON state writer.

Files are written to a temp file beside the target and swapped in with
replace(), so readers never observe a half-written document. Every file can
optionally be mirrored into a second root (a static site checkout, a bucket
mount, ...).
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from shared.logging.logger import get_logger

log = get_logger("shared.state_publisher", runtime="causewatch")


class StateFilePublisher:
    DEFAULT_BASE_DIR = Path("shared/state")
    ENV_PUBLISH_ROOT = "CAUSEWATCH_STATE_PUBLISH_ROOT"

    def __init__(
        self,
        base_dir: Path | str | None = None,
        publish_root: Path | str | None = None,
    ):
        self._base_dir = Path(base_dir) if base_dir else self.DEFAULT_BASE_DIR
        self._base_dir.mkdir(parents=True, exist_ok=True)

        env_root = os.getenv(self.ENV_PUBLISH_ROOT)
        root = publish_root or env_root
        self._publish_root = Path(root) if root else None

        if self._publish_root:
            self._publish_root.mkdir(parents=True, exist_ok=True)
            log.info(f"State publish root: {self._publish_root}")

    # ------------------------------------------------------------------
    # Atomic writer
    # ------------------------------------------------------------------

    def _write_atomic(self, path: Path, payload: Any) -> None:
        serialized = json.dumps(payload, indent=2)
        path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, delete=False, encoding="utf-8"
        ) as tmp:
            tmp.write(serialized)
            tmp.flush()
            os.fsync(tmp.fileno())
            temp_path = Path(tmp.name)

        temp_path.replace(path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def publish_root(self) -> Optional[Path]:
        return self._publish_root

    def publish(self, relative_path: Path | str, payload: Any) -> bool:
        """
        Write payload to <base_dir>/<relative_path> and, when configured,
        mirror it to <publish_root>/<relative_path>.

        Returns False when the primary write failed. Errors are logged and
        never raised.
        """
        rel = Path(relative_path)
        target = self._base_dir / rel

        try:
            self._write_atomic(target, payload)
        except (OSError, TypeError, ValueError) as e:
            log.error(f"Failed to write state file {rel}: {e}")
            return False

        if not self._publish_root:
            return True

        mirror = self._publish_root / rel
        try:
            self._write_atomic(mirror, payload)
        except (OSError, TypeError, ValueError) as e:
            log.warning(f"Failed to mirror state file {rel}: {e}")

        return True
