"""
Advert: periodic advertisement broadcaster for game server plugin hosts.

Rotates through configured ad groups on a timer and delivers each group's
messages to chat, center text, HTML, alerts, the round-end panel or audio.
"""

__version__ = "1.1.0"
