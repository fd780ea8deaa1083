"""Bot services: store, lexicon, translation, caches, engine and workflow."""
