"""CLI tool for running and operating the coordinator.

Usage:
    python -m coordinator.cli serve [--port 4000]
    python -m coordinator.cli sweep
    python -m coordinator.cli stats
"""

import json
import sys

from coordinator.config import settings
from coordinator.utils.logging import setup_logging


def serve(args: list[str]):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    port = settings.port
    if "--port" in args:
        idx = args.index("--port")
        try:
            port = int(args[idx + 1])
        except (IndexError, ValueError):
            print("--port needs an integer value.")
            sys.exit(1)

    print("\nSwap Coordinator")
    print(f"Running on http://{settings.host}:{port}\n")
    uvicorn.run("coordinator.main:app", host=settings.host, port=port)


def _require_sql_backend():
    if settings.registry_backend != "sql":
        print("The memory registry is empty outside the server; set SC_REGISTRY_BACKEND=sql.")
        sys.exit(1)


def sweep():
    """Run one expiry sweep against the configured registry."""
    from coordinator.engine.reaper import ExpiryReaper
    from coordinator.main import build_registry

    _require_sql_backend()
    reaper = ExpiryReaper(build_registry(settings))
    expired = reaper.sweep()
    print(f"Expired {expired} trade(s).")


def stats():
    """Print trade counters from the configured registry."""
    from coordinator.main import build_registry

    _require_sql_backend()
    registry = build_registry(settings)
    print(json.dumps(registry.stats.snapshot().to_dict(), indent=2))


def main():
    if len(sys.argv) < 2:
        print("Usage: python -m coordinator.cli <command>")
        print("Commands: serve, sweep, stats")
        sys.exit(1)

    setup_logging()
    command = sys.argv[1]
    if command == "serve":
        serve(sys.argv[2:])
    elif command == "sweep":
        sweep()
    elif command == "stats":
        stats()
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
