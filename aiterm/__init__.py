"""
aiterm: a terminal assistant that turns natural language into shell scripts,
shows them to you, and runs them once you agree.
"""

__version__ = "0.1.0"


class AitermError(Exception):
    """Base class for every error raised by aiterm."""
