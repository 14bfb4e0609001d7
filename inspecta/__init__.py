"""Android package size audit and unused resource detection."""

__version__ = "0.1.0"
