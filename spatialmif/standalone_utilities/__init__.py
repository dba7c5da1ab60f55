"""Simple standalone functionality used across subpackages."""
