"""
Site Insight - Static upgrade and risk audit for Drupal-style sites

Walks every installed module and theme, scans source for deprecated APIs,
security smells, coding-standard violations and performance anti-patterns,
scores each unit, and merges unit and site-level domain findings into one
prioritized report.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
