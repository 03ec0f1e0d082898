"""Typer sub-applications for the replant CLI."""
