"""Shared infrastructure: structlog setup, async database access, rounding helpers."""
