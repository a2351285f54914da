"""Receipt Tracker backend."""
