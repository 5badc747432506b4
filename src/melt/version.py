"""Package version, shared by the package and emitted headers."""

__version__ = "1.0.0"
