"""
Pipeline components for renewals.

Pure stages of a sync: matching, enrichment and scoring. Subpackages expose
the primary entry points that other layers use.
"""

__all__ = ["enrichment", "matching", "scoring"]
