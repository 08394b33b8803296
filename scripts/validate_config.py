"""
Configuration validation script.

Checks shared/config/watcher.json (or the path given as the first argument)
against the watcher schema without starting the runtime. Credentials are
not required.

Exit codes: 0 valid, 1 invalid.
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.config_loader import ConfigLoader  # noqa: E402


def _error(msg: str):
    print(f"[CONFIG ERROR] {msg}", file=sys.stderr)


def main(argv: list[str]) -> int:
    path = Path(argv[0]) if argv else ROOT / "shared" / "config" / "watcher.json"
    if not path.exists():
        _error(f"{path} does not exist")
        return 1

    errors = ConfigLoader(path).check()
    for err in errors:
        _error(err)

    if errors:
        return 1

    print(f"[CONFIG OK] {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
