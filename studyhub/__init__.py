"""Study Hub activity tracking and recommendation backend."""

__version__ = "0.1.0"
