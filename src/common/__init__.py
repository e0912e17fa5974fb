"""Shared settings, errors, and logging helpers."""
