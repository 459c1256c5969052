"""
opsguard: retry, circuit breaking, compensating transactions and recovery
strategies for the operations console backend.
"""

__version__ = "0.1.0"
