"""Command line interface for PyDecline."""
