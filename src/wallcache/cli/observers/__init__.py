"""
CLI Observers

Event observers that render cache activity in the terminal.
"""

from wallcache.cli.observers.progress import BatchProgressObserver

__all__ = ['BatchProgressObserver']
