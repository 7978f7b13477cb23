"""Home Assistant-bound helper modules for Zen Reminders."""
