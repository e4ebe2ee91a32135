"""
Test suite for Meeting Insights.

This package contains tests for all core functionality including:
- Item normalization and similarity matching
- Markdown section extraction and stripping
- Historical insight loading and item reconciliation
- Retry-validated generation and the pipeline orchestrator
- Configuration management and the CLI
"""
