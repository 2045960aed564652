"""Core business logic layer.

Subpackages:
- shopping: rolling-stock reconciliation and restock enrichment
- pantry: survival and expiry aggregations
"""
__all__ = ["shopping", "pantry"]
