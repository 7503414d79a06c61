"""Core matching logic: models, rules, configuration."""
