#!/usr/bin/env python
"""
satoffset - spacecraft offsets for MPC astrometry

This is the main entry point for the satoffset command-line tool. It reads a
file of 80-column MPC astrometry and writes it back out with geocentric
spacecraft offset ('s') lines generated from JPL Horizons state vectors.

Version: 1.0.0
"""

import sys


def main():
    """Main entry point for satoffset."""
    try:
        from satoffset.cli.main import main as cli_main
        cli_main(sys.argv[1:])
    except ImportError as e:
        print(f"ERROR: Failed to import required module: {e}", file=sys.stderr)
        print("Ensure all dependencies are installed: pip install -e .", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        sys.exit(130)  # Standard exit code for SIGINT


if __name__ == "__main__":
    main()
