"""Configuration, logging, and app-data helpers."""
