"""Ordering services."""
