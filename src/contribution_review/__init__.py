"""Contribution review and revision service."""
