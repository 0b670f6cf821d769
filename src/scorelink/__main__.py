"""Entry point for running scorelink as a module.

Usage:
    python -m scorelink scores main --limit 10
"""

from scorelink.cli import main

if __name__ == "__main__":
    main()
