"""Database layer for Habitta."""
