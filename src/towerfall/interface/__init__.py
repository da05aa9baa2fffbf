"""Command-line interface for towerfall."""
