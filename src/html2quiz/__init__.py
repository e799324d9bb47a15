"""Extract quiz questions from loosely-authored HTML and render them as pages."""

from .version import __version__

__all__ = ["__version__"]
