"""Observability — logging setup and operator progress lines."""
