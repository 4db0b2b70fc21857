# satoffset/__init__.py

"""
satoffset - spacecraft offsets for MPC astrometry.

Adds geocentric spacecraft positions ('s' lines) to 80-column MPC
observations made from spacecraft, using state vectors from JPL Horizons.
"""

__version__ = "1.0.0"

__all__ = ['__version__']
