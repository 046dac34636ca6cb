"""
Portfolio Radar: a portfolio dashboard backend refreshed by a search-enabled AI model.
"""

__version__ = "0.1.0"
