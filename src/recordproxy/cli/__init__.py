"""Command-line interface for inspecting recordproxy databases."""
