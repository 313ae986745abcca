"""Keepalive - a minimal process supervisor.

Launches named shell commands, restarts them whenever they exit and shuts
them down gracefully on interrupt.
"""

__version__ = "0.1.0"
