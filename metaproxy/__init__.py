"""
MetaProxy - allow-listed request director for arbitrary destinations.
"""

__version__ = "0.1.0"
