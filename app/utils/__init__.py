"""Shared helpers for the AI-Solutions API."""
