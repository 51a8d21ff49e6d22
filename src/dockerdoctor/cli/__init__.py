"""Command line interface for dockerdoctor."""
