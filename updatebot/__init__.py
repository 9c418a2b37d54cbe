"""updatebot: propagate a released version to downstream repositories via pull requests."""

__version__ = "0.1.0"
