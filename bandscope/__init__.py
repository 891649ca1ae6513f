"""
BandScope

Audio analysis backend: RMS envelope, beat and spectral features,
heuristic content classification, and two-track frequency interference
analysis with EQ suggestions.
"""

__version__ = "1.0.0"
