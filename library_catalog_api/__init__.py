"""
Top-level package for the Library Catalog API.

The HTTP service lives in ``app``; ``client`` and ``cli`` provide a
Python client and a command line front end for the same REST API.
"""

__all__ = []
