# scripts/smoke.py
"""
Smoke Test Script for the backup engine.

Runs the engine three times against a scratch directory with the real `tar`:
first run backs up, second run skips, third run (after adding a file) backs
up again. Prints the resulting history log.

Usage
-----
    $ uv run python scripts/smoke.py
    $ uv run python scripts/smoke.py --keep   # leave the scratch directory behind
"""

import argparse
import asyncio
import logging
import shutil
import sys
import tempfile
from pathlib import Path

from dotenv import load_dotenv

from backup_trigger.cli import build_engine

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)


async def _scenario(root: Path) -> None:
    source = root / "source"
    source.mkdir()
    (source / "a.txt").write_text("alpha", encoding="utf-8")
    (source / "b.txt").write_text("beta", encoding="utf-8")

    log_file = root / "backup_log.txt"
    engine = build_engine(log_file, timeout=60)
    destination = root / "backups"

    for label in ("initial", "unchanged"):
        outcome = await engine.run(source, destination)
        print(f"[{label}] {outcome.decision.value}: {outcome.entry.message}")

    (source / "c.txt").write_text("gamma", encoding="utf-8")
    outcome = await engine.run(source, destination)
    print(f"[added c.txt] {outcome.decision.value}: {outcome.entry.message}")

    print("\n--- history log ---")
    print(log_file.read_text(encoding="utf-8"), end="")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a local backup-trigger smoke test.")
    parser.add_argument("--keep", action="store_true", help="Keep the scratch directory.")
    args = parser.parse_args()

    if shutil.which("tar") is None:
        print("❌ tar is not on PATH; nothing to smoke-test.")
        sys.exit(1)

    root = Path(tempfile.mkdtemp(prefix="backup-trigger-smoke-"))
    try:
        asyncio.run(_scenario(root))
    finally:
        if args.keep:
            print(f"\nScratch directory kept at {root}")
        else:
            shutil.rmtree(root, ignore_errors=True)


if __name__ == "__main__":
    main()
