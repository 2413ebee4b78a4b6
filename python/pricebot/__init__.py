"""Catalog refresh and price question answering for a single storefront."""

__version__ = "0.1.0"
