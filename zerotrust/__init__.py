"""
ZeroTrust Oracle - Consensus Threat Scoring
===========================================

Four independent scorers (risk, privacy compliance, treasury impact and an
adaptive guardian) combined into one allow / monitor / alert / block verdict,
with a feedback loop fed by ground-truth outcomes.
"""

__version__ = "1.0.0"

# Imports are done directly in each module to avoid circular dependencies
# Use: from zerotrust.orchestrator import ConsensusEngine
# Use: from zerotrust.schemas import TransactionEvent
