"""In-memory key-value database with logical-time expiration, snapshots, stores, locks and a command state machine."""

__version__ = "0.1.0"