"""Presentation helpers for the dashboard."""
