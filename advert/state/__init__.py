"""Shared broadcaster state for Advert."""
