"""VideoVault API - social video platform backend."""

__version__ = "1.0.0"
