"""Reference agent runtime speaking the hub protocol."""
