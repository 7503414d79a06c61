"""Rule-based internship matching and ranking."""

__version__ = "0.3.0"
