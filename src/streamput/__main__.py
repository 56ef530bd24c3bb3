"""
streamput CLI entry point.

Usage:
    python -m streamput upload https://example.com/feed.xml feeds/feed.xml -b my-bucket
    python -m streamput config
"""

from streamput.cli import main

if __name__ == "__main__":
    main()
