"""
Core modules for promptcraft.

This package contains the core business logic for:
- Creative options and configuration
- Request compilation and the Gemini gateway
- The session ledger, reconciliation and persistence
"""
