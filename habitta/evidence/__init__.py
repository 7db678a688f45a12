"""Evidence extraction from provider payloads."""
