"""
SCAT5 Assessment Engine

Session orchestration and scoring for a multi-module concussion assessment
driven by an out-of-band voice command channel.
"""

__version__ = "1.0.0"
