"""Climate zone classification."""
