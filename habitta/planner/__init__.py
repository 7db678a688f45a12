"""Seasonal maintenance planning."""
