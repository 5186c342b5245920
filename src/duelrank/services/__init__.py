# src/duelrank/services/__init__.py

"""Business logic for match, leaderboard and player operations."""
