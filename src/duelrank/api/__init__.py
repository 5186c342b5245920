# src/duelrank/api/__init__.py

"""HTTP routers."""
