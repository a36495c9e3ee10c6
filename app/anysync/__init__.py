"""anysync - keep directories relocated on tmpfs with a durable backup.

Sync sources are replaced by symlinks into a volatile storage area while
their original content is kept as a sibling backup directory. The backup
is refreshed on demand and the original layout is restored on shutdown
or after a crash.
"""

__version__ = "0.4.0"
