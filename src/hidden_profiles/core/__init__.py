"""Configuration, caching and request plumbing."""
