"""Reporting services."""
