"""
imarchive: pack experiment image folders into self-describing containers
and keep a catalog of them.
"""

__version__ = "0.1.0"
