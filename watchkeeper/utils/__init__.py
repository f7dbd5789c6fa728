"""Utility helpers for Watchkeeper."""
