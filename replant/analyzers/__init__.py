"""Regex-based analyzers for Flutter project sources."""
