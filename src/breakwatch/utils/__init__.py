"""Utility helpers for breakwatch."""
