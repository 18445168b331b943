"""Dice expression engine for tabletop RPGs."""

__version__ = "1.0.0"
