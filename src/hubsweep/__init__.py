"""
hubsweep: Resumable background re-validation of hub messages.

Walks every fid in the hub's key-value store, re-checks the messages stored
under it against current authoritative state, and revokes the ones that are
no longer valid.
"""

__version__ = "0.1.0"
