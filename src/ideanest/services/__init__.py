# src/ideanest/services/__init__.py
"""Business services for the IdeaNest API."""
