"""
Core infrastructure for wallcache: configuration, errors, events and the
on-disk cache.
"""
