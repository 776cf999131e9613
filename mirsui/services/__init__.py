"""Domain services built on the backend interface."""
