"""
Renewal enrichment package.

Assembles renewal records from deals and their matched communications.
"""

from .service import RenewalAssembler, assemble

__all__ = ["RenewalAssembler", "assemble"]
