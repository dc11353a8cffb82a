"""EarthAI: map viewer chat assistant backend."""

__version__ = "0.1.0"
