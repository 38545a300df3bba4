"""Event contracts shared between the builder and its clients."""
