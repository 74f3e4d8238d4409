"""repoloc: line-count statistics for remote repositories, rendered as a tree."""

__version__ = "0.1.0"

__all__ = ["__version__"]
