#!/usr/bin/env python3
"""Main CLI entry point for the ECASIM asset simulator.

This script provides the 'ecasim' command line interface for replaying
profile days against energy community topologies.

Usage:
    ecasim replay topology.yaml profile.csv
    ecasim show-config
    ecasim version
"""

import sys

from ecasim.cli.main import create_cli_app


def main():
    """Main CLI entry point."""
    try:
        app = create_cli_app()
        app()
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(1)


if __name__ == "__main__":
    main()
