"""English → Tulu translation bot core.

Tiered lookup (base lexicon, community dictionary, API cache, live machine
translation) with a community teaching/correction workflow.
"""

__version__ = "1.0.0"
