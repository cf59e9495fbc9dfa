"""Fantasy drum-corps season simulation and scoring engine."""

__version__ = "0.1.0"
