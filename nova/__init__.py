"""Nova Studio: credential custody and access control for the design workspace."""

__version__ = "0.1.0"
