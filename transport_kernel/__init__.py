"""
Transport Kernel - requisition approval workflow core

A persistence-backed transport requisition system with:
- Data-driven multi-stage approval chain
- Atomic decision processing (decision + next stage in one savepoint)
- Typed, HTTP-mappable error hierarchy
- Structured JSON logging
"""

__version__ = "0.1.0"
