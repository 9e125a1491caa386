"""Presentation layer helpers."""
