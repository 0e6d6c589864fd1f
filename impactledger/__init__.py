"""
ImpactLedger: Verified Environmental Impact Claims
===================================================

Multi-party verification of environmental impact claims. Validators and
registered external data sources attest claims, a weighted running
consensus produces the verified amount, and verified claims mint durable
credentials.

The engine lives in ``impactledger.verification``.
"""

from ._version import __version__

__author__ = "ImpactLedger Team"
__license__ = "MIT"

__all__ = ["__version__"]
