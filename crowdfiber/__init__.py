"""Asynchronous client of the CrowdFiber API."""

__version__ = "0.1.0"
