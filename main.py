#!/usr/bin/env python3
"""
Niche Scout command-line entry point.

Examples:
    python main.py serve --port 8000
    python main.py ping
    python main.py search "silicone spatula" --max-results 10 --save 1 3
    python main.py history
    python main.py watch results
"""

import sys

from nichescout.cli import run_cli


if __name__ == "__main__":
    sys.exit(run_cli())
