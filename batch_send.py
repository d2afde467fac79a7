#!/usr/bin/env python3
"""
Send one SPL token transfer from every wallet in a file, in parallel.

Usage:
  python batch_send.py send --wallets wallets.txt --mint <MINT> --destination <ADDR> --amount 1.5
  python batch_send.py balances --wallets wallets.txt

Env: RELAY_API_BASE, RELAY_API_KEY, SEND_CONCURRENCY (default=8), SEND_MAX_ATTEMPTS (default=3).
"""

from __future__ import annotations

import os
import sys

# Run from project root so multisend is importable
if __name__ == "__main__" and not __package__:
    _root = os.path.abspath(os.path.dirname(__file__))
    if _root not in sys.path:
        sys.path.insert(0, _root)

from multisend.cli import main

if __name__ == "__main__":
    sys.exit(main())
