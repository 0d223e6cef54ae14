"""fabctl — bootstrap and operate a permissioned ledger network."""

__version__ = "0.1.0"
