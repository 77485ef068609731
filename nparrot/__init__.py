"""Notes and events stores, tool-parameter sanitising, progress reminders and a goose command runner."""

__version__ = "0.1.0"