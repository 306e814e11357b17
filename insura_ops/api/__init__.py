"""Diagnostics HTTP API."""
