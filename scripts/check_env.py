"""Report whether the gateway would start with a given ``.env`` file.

    python -m scripts.check_env --env-file /srv/qbo-gateway/.env

Exits 0 when the QuickBooks client id, secret and redirect URI load cleanly,
2 when any is missing or invalid (each offending variable is listed on
stderr) and 5 when the env file itself cannot be found.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from qbo_gateway.core.config import load_settings
from qbo_gateway.core.errors import ConfigurationMissing

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 5


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate QuickBooks gateway settings.")
    parser.add_argument("--env-file", type=Path, default=Path(".env"))
    args = parser.parse_args(argv)

    if not args.env_file.is_file():
        print(f"No env file at {args.env_file}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = load_settings(str(args.env_file))
    except ConfigurationMissing as exc:
        for field in exc.fields:
            print(f"missing or invalid: {field}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    print(
        f"OK: {settings.quickbooks.environment} "
        f"({settings.quickbooks.api_host}), port {settings.port}"
    )
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
