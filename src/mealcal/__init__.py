"""
Mealcal household meal calendar package.

The package tracks a catalogue of dishes, assigns them to lunch/dinner slots on a weekly
calendar, and keeps every dish's last-eaten date consistent with that calendar.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
