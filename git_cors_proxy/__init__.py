"""
Git CORS Proxy

CORS-enabling reverse proxy for the Git Smart HTTP protocol.
"""

__version__ = "1.0.0"
