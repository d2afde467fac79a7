"""
multisend: push the same SPL token transfer from up to 30 wallets in parallel.

Builds one transaction per signer, submits through an authenticated HTTP relay,
refreshes the blockhash and re-signs on staleness, and reports one terminal
outcome per wallet.
"""

__version__ = "0.1.0"
