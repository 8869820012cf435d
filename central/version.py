"""Version metadata for Nomad."""

__version__ = "0.3.0"
