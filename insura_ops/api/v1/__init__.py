"""Version 1 of the diagnostics API."""
