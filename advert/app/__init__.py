"""Advert plugin orchestrator and console entry point."""
