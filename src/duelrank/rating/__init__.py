# src/duelrank/rating/__init__.py

"""Rating and stat transition rules."""
