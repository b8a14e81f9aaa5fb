"""Lineup Lab - Pickleball doubles lineup recommendations.

Pairs the available players of a team into doubles teams and scores every
pairing against the opponent's likely lineups (blind mode) or a known
8-round opponent schedule (known-opponent mode).
"""

__version__ = "0.1.0"
