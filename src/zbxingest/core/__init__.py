"""Pure parsing and classification core."""
