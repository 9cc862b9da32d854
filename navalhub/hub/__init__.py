"""Tournament hub: agent processes, rounds, scheduling, and supervision."""
