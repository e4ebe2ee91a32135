"""
Meeting Insights - corrected transcripts, structured summaries and
longitudinal deeper-insight documents for recorded meetings.
"""

__version__ = "0.1.0"
