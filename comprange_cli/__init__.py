"""
CompRange CLI Package

Rich-based command line front end for building and querying the salary
range reference tables.
"""

from .main import app
from _version import __version__, get_full_version, get_version_dict

__all__ = ["app", "__version__", "get_full_version", "get_version_dict"]
