"""Machine-translation backends and the racing fetcher.

Use explicit imports:
    from tulubot.services.translation.fetcher import TranslationFetcher
"""
