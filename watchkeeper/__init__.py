"""
Watchkeeper: endpoint watcher service core.

Keeps one watcher connection per registered game-server endpoint, persists
endpoint state in a small file-backed record store and reconciles liveness
on a timer.
"""

__version__ = "0.1.0"
