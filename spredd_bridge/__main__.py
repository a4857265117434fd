"""
Entry point for running the bridge CLI as a module.

Usage:
    python -m spredd_bridge
"""

from spredd_bridge.cli import main

if __name__ == "__main__":
    main()
