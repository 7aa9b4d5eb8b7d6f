#!/usr/bin/env python3
"""Live sync verification tool.

Seeds a store from a remote endpoint, applies a few local edits (including an
undo), flushes the debounced write and reports what was sent and any errors.

Configuration is read from ``POUCH_SYNC_*`` environment variables (see
``SyncConfig.from_env``); ``--url`` overrides ``POUCH_SYNC_URL``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pypouch import SyncConfig, history, pouch, sync  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--url", help="Endpoint to sync with (overrides POUCH_SYNC_URL)")
    parser.add_argument("--edit", action="append", default=[], help="JSON value to set locally; repeatable")
    parser.add_argument("--undo", action="store_true", help="Undo the last edit before flushing")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable DEBUG logging")
    return parser.parse_args()


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, Any] = {}
    if args.url:
        overrides["url"] = args.url
    config = SyncConfig.from_env(**overrides)

    errors: list[Exception] = []
    state = pouch(None, [history(), sync(config, on_error=errors.append)])
    await state.sync.drain()
    print(f"seeded: {json.dumps(state.get())}")

    for raw in args.edit:
        state.set(json.loads(raw))
        print(f"set:    {json.dumps(state.get())}")
    if args.undo:
        state.history.undo()
        print(f"undo:   {json.dumps(state.get())}")

    state.sync.flush()
    await state.sync.aclose()

    for error in errors:
        print(f"error:  {error!r}", file=sys.stderr)
    return 1 if errors else 0


def main() -> None:
    args = _parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    raise SystemExit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
