"""Lifespan and climate-factor reference tables."""
