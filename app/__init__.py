"""Dealer SEO Hub"""

__version__ = "1.0.0"
