#!/usr/bin/env python3
"""
Launcher script for the pose streaming loop.

Usage:
    python run.py           # Stream the bundled recording
    python run.py --help    # Show CLI options
"""

if __name__ == "__main__":
    from pose_stream.cli import main
    raise SystemExit(main())
