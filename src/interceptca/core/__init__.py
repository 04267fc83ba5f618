"""Shared types and filesystem helpers."""
