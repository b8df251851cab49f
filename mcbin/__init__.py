"""
mcbin: Binary Memcached Client

A small, blocking client for the memcached binary protocol, talking to a
single server over one TCP connection.
"""

from .client import Client

__version__ = "1.0.0"

__all__ = ["Client"]
