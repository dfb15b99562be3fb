"""
Klondike - Solitaire Game Engine

A deterministic, rules-driven engine for single-player Klondike solitaire.
The engine provides:
- Card and zone state management
- Validated, atomic move application
- Derived queries (legal moves, hints, win detection)
- Scoring and rotating daily missions
- Persistence of the full game through an injected key/value store
"""

__version__ = "0.1.0"
