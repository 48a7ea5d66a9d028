"""
On-chain side of the harness: wallet client, allowances and intent submission.
"""
from .client import EvmClient
from .allowance import AllowanceManager, ApprovalOutcome
from .submitter import IntentSubmitter, IntentSubmission

__all__ = [
    'EvmClient',
    'AllowanceManager',
    'ApprovalOutcome',
    'IntentSubmitter',
    'IntentSubmission',
]
