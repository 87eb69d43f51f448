"""RedCode: a multi-tab text editor built around a document-session manager."""

__version__ = "0.1.0"

__all__ = ["__version__"]
