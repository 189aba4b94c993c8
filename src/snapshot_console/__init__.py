"""Snapshot Console - SQL console over remote, versioned database snapshots."""

__version__ = "0.1.0"
