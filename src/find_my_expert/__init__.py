"""Find My Expert: discover academic experts for any subject."""

__version__ = "0.1.0"
