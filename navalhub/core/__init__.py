"""Domain models, rules, and the hub/agent wire protocol."""
