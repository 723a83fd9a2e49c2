"""Schema-Upgrader: sequential, versioned schema upgrades."""

__version__ = "0.3.0"
