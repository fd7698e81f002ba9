"""Building blocks for matching JSON events: event flattening, pattern parsing and match bookkeeping."""

__version__ = "0.1.0"