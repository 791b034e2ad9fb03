"""
Core business logic modules for PharMatch.

Submodules:
- matching: Queue building, scoring, swipe ledger, quotas and match detection
"""
