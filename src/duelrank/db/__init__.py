# src/duelrank/db/__init__.py
