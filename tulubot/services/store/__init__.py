"""Persistent store adapters.

Use explicit imports:
    from tulubot.services.store.base import Table, TranslationStore
    from tulubot.services.store.resilient import ResilientTranslationStore
"""
