"""Embedded SQL engine runtimes, loader and database sessions."""
