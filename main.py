#!/usr/bin/env python

"""
Lock Repaint - Main Entry Point

Watches the Cinnamon screensaver for lock events and, when the screen is
locked with the monitor powered off, bounces virtual terminals to repaint the
display before turning the monitor off again.

Usage:
    python main.py

Requirements:
    - Python 3.10+
    - xprintidle, xset, gsettings and passwordless `sudo chvt`
    - See pyproject.toml for Python dependencies
"""

import sys

from lockrepaint.app import main


if __name__ == "__main__":
    sys.exit(main())
