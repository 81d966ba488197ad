# src/ideanest/schemas/__init__.py
"""Pydantic schemas for the IdeaNest API."""
