"""Over-the-air bundle lifecycle manager.

Downloads web bundle archives, unpacks them into a hot and a persistent
directory tree, and arbitrates which bundle is current with a commit /
rollback / fallback state machine.
"""

__version__ = "0.4.0"
