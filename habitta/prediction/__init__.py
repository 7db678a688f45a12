"""Prediction rule engine."""
