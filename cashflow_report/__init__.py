"""Cash-flow reporting engine over accounts and invoices ledgers."""

__version__ = "0.1.0"
