"""Core app configuration, database, security primitives."""
