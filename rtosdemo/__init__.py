"""Concurrent console, UDP command interpreter, UDP echo clients and a run-time counter."""

__version__ = "0.1.0"