"""Usage reports, event statistics and pool metrics for a storage control plane."""

__version__ = "0.1.0"