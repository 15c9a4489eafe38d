"""
Main entry point for the xcc CLI

This allows running the CLI with: python -m xcc
"""
import sys

from .cli import main

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nStopped.")
        sys.exit(0)
