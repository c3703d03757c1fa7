"""Availability and match-invite scheduling for a tennis ladder."""

__version__ = '0.1.0'
