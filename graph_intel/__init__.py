"""
Relationship Graph Intelligence

Introduction paths, influence metrics and network insights over an
entity/edge relationship graph.
"""

__version__ = "0.1.0"
