"""Contract interface code generator and dynamic CLI engine."""

__version__ = "0.1.0"
