"""Personalized swipe-feed ranking engine.

Folds a reader's interaction history into decay-weighted signals, scores
and diversifies candidate stories, and keeps an in-progress viewing session
re-ranked as the reader likes, skips, dwells and clicks.
"""

__version__ = "0.1.0"
