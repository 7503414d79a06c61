"""Recommendation boundary: pool filtering and response shaping."""
