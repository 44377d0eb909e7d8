"""worksync: workspace tree store, reconciliation and data access."""

__version__ = "0.1.0"
