"""
Configuration module for Advert.

Config model, JSONC provider with hot reload, runtime settings and the
config watcher that applies reloads to the broadcaster.
"""
