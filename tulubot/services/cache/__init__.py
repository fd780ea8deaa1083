"""Read-through caches in front of the translation store."""
