"""
Entry point for running the AR guide as a module.

Usage:
    python -m ar_guide [seconds]
"""

from .cli import main

if __name__ == "__main__":
    main()
