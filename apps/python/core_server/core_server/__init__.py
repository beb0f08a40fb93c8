"""Ideaboard FastAPI application."""
