"""
wallcache command-line interface.

Typer-based CLI for fetching the wallpaper catalog and managing the local
image cache.
"""

from wallcache import __version__

__all__ = ['__version__']
