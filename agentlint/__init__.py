"""Cross-file linting for agent, command, skill and rule corpora."""

__version__ = "0.4.0"

__all__ = ["__version__"]
