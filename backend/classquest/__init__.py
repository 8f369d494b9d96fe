"""ClassQuest: gamified classroom backend."""

__version__ = "0.3.0"
