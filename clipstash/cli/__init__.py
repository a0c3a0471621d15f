"""Command-line interface for clipstash."""
