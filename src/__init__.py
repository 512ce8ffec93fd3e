"""propstore: process-wide property configuration store.

This package keeps application settings as flat string key/value pairs:
- Loading from and saving to Java-style ``.properties`` files
- Typed accessors (int, long, bool) parsed on demand
- Thread-safe mutation of one shared store per process
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
