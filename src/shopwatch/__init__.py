"""Company, product and monitoring-config backend."""

__version__ = "0.1.0"
