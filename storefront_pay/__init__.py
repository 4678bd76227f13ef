"""Payment callback verification and order reconciliation for the storefront."""

__version__ = "1.0.0"
