"""Pydantic DTOs for the HTTP adapter."""
