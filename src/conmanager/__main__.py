"""
Content Manager CLI entry point.

Usage:
    python -m conmanager get players
    python -m conmanager upload ./picture.jpg Pictures/picture.jpg
"""

from conmanager.cli import main

if __name__ == "__main__":
    main()
