"""ProjectLens — Ask questions about a codebase, answered from its own code."""

__version__ = "0.1.0"
