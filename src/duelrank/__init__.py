# src/duelrank/__init__.py

"""DuelRank: player rating, stats and leaderboard engine."""

__version__ = "0.1.0"
