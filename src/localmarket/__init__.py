"""localmarket - a local marketplace storefront backend."""

__version__ = "0.1.0"
