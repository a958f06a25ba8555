"""
Photo browser - browse a local directory tree over HTTP and page through images.
"""

__version__ = "1.0.0"
