"""
GEO visibility tracker: audit orchestration and visibility analytics
"""

__version__ = "1.0.0"
