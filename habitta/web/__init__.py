"""Habitta web API."""
