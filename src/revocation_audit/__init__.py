"""
revocation_audit — certificate revocation data auditor.

Compares the revoked issuer/serial pairs held in a local cert_storage
key-value store against Kinto (OneCRL), revocations.txt and the CCADB
revoked-intermediates report, and reports the differences.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
