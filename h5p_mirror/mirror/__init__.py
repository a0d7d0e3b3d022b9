"""Mirror pipeline: the discover -> install -> publish loop and the run around it."""
