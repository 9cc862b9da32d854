"""Naval battle tournament hub and agent runtime."""
