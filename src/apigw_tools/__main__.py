# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Entry point for the CLI (run via ``apigw-tools``, ``aws-api-gateway-tools``, or ``python -m apigw_tools``)."""

from __future__ import annotations

import sys


def main() -> None:
    """Run the CLI."""
    try:
        from apigw_tools.cli import cli
    except ImportError:
        sys.stderr.write("apigw-tools CLI dependencies missing. Install with: pip install apigw-tools\n")
        sys.exit(1)
    cli()


if __name__ == "__main__":
    main()
