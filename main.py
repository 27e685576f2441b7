#!/usr/bin/env python3
"""
main.py - Quick-start entry point.

Drop images into ``images/`` and run:

    python main.py batch

Or convert a single file:

    python -m pixel_palette.cli convert my_photo.jpg -b 8 -p gameboy
    python -m pixel_palette.cli palettes
"""

from pixel_palette.cli import app

if __name__ == "__main__":
    app()
