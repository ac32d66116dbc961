"""Entry point: python -m contentsync [status|migrate|force|resolve]

- No args / "status":            Show migration state and pending legacy keys
- "migrate":                     Run the one-time migration if still needed
- "force":                       Clear the completion flag and migrate again
- "resolve PAGE FIELD [DEFAULT]": Resolve one content field through all tiers
"""

from __future__ import annotations

import asyncio
import logging
import sys

from contentsync.config import ContentSyncConfig, load_config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _print_report(report) -> None:
    if report is None:
        print("Nothing to do.")
        return
    if report.skipped:
        print(f"Skipped: {report.skipped}")
        return
    for step in report.steps:
        status = "ok" if step.ok else f"FAILED ({step.error})"
        print(f"  {step.domain:<16} {status:<10} {step.written} written")
    print(f"Removed {len(report.cleaned_keys)} legacy key(s).")


def _run_status() -> None:
    config = load_config()
    _setup_logging(config.log_level)

    from contentsync.app import ContentApp

    # status only reads the local cache; the remote session is never opened
    app = ContentApp.from_config(config)
    pending = [k for k in app.migration.cleanup_keys if k in app.cache]
    print(f"Cache:   {config.cache.path}")
    print(f"State:   {app.migration.state.value}")
    print(f"Pending: {len(pending)} legacy key(s)")
    for key in pending:
        print(f"  - {key}")


async def _run_app(cmd: str, args: list[str], config: ContentSyncConfig) -> None:
    from contentsync.app import ContentApp

    app = ContentApp.from_config(config)
    try:
        if cmd == "migrate":
            _print_report(await app.initialize())
        elif cmd == "force":
            _print_report(await app.migration.force_migration())
        elif cmd == "resolve":
            page_key, field = args[0], args[1]
            default = args[2] if len(args) > 2 else None
            print(await app.resolver.page_field(page_key, field, default))
    finally:
        await app.close()


def _usage() -> None:
    print("Usage: python -m contentsync [status|migrate|force|resolve PAGE FIELD [DEFAULT]]")
    print("  status   — Show migration state (default)")
    print("  migrate  — Run the one-time migration if still needed")
    print("  force    — Clear the completion flag and migrate again")
    print("  resolve  — Resolve one content field (remote → cache → default)")
    sys.exit(1)


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "status"
    args = sys.argv[2:]

    if cmd == "status":
        _run_status()
    elif cmd in ("migrate", "force") or (cmd == "resolve" and len(args) >= 2):
        config = load_config()
        _setup_logging(config.log_level)
        asyncio.run(_run_app(cmd, args, config))
    else:
        _usage()


if __name__ == "__main__":
    main()
