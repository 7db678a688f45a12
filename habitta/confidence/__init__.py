"""Install confidence scoring, transitions and copy gating."""
