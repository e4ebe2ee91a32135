"""
Core functionality for Meeting Insights.

This package contains the main logic for:
- Speech-to-text conversion of meeting recordings
- Summary and deeper-insight generation with retry validation
- Historical insight loading and open/closed item reconciliation
- Configuration management
"""
