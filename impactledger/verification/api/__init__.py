# -*- coding: utf-8 -*-
"""
Impact Verification REST API package.

The router is None when FastAPI is not installed.
"""

from impactledger.verification.api.router import API_PREFIX, router

__all__ = ["API_PREFIX", "router"]
