"""Fetch, compile against and link prebuilt OR-Tools for the CP-SAT binding."""

__version__ = "0.3.0"
