"""Tischreservierung: Reservierungsverwaltung für ein Restaurant mit zehn Tischen."""

__version__ = "1.0.0"
