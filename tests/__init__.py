"""
Test suite for pgdiff.

This package contains tests for all pgdiff components:
- Unit tests for the merge diff engine and column change detection
- Unit tests for configuration, database streaming and the CLI
"""
