"""HTTP API for Snapshot Console."""
