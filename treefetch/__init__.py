"""
treefetch

Fetch a URL, follow its links breadth-first to a bounded depth, and save
every discovered resource.
"""

__version__ = "1.0.0"
__description__ = "Depth-bounded link discovery and concurrent download"
