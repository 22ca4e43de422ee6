"""
Couchbase Bootstrap - A Python package for bootstrapping Couchbase clusters.

This package provides utilities for:
- Declarative bucket creation and update
- Ordered execution of N1QL statements before and after bucket provisioning
- CA certificate handling for TLS connections
"""

__version__ = "0.1.0"
