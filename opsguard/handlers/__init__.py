"""Handler modules for transactions, recovery and remote functions."""

from .recovery_manager import RecoveryManager
from .remote_functions import RemoteFunctionClient
from .transaction_manager import TransactionManager

__all__ = ["RecoveryManager", "RemoteFunctionClient", "TransactionManager"]
