"""Command line interface for inkmlp."""
