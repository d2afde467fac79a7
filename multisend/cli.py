"""
Command-line front end: send one token transfer from every wallet in a file,
or look up the wallets' SOL balances through the relay.

Usage:
  multisend send --wallets wallets.txt --mint <MINT> --destination <ADDR> --amount 1.5 [--decimals 6]
                 [--priority-fee 0] [--concurrency 8]
  multisend balances --wallets wallets.txt

Wallet file: one wallet per line, "name:<secret>" or just "<secret>"; the secret
is a JSON byte array or base58.
Env: RELAY_API_BASE, RELAY_API_KEY, SEND_CONCURRENCY, SEND_MAX_ATTEMPTS,
     SEND_RETRY_BASE_DELAY_SEC, RELAY_TIMEOUT_SEC, TOKEN_DECIMALS, LOG_LEVEL, LOG_FORMAT.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path

from multisend import __version__
from multisend.config import SenderConfig, get_settings
from multisend.config.env import print_multisend_startup
from multisend.core.exceptions import MultisendError
from multisend.engine.dispatcher import send_batch
from multisend.engine.models import SendOutcome, SignerIdentity, TransferPlan
from multisend.engine.relay import RelayClient
from multisend.engine.wallets import parse_wallet_batch
from multisend.multisend_logging import get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _load_wallets(path: str) -> list[SignerIdentity]:
    text = Path(path).read_text(encoding="utf-8")
    signers = parse_wallet_batch(text)
    if not signers:
        raise MultisendError(f"No wallets found in {path}")
    return signers


def _print_outcome(outcome: SendOutcome) -> None:
    if outcome.ok:
        print(f"ok    {outcome.wallet}  {outcome.signature}", flush=True)
    else:
        print(f"FAIL  {outcome.wallet}  {outcome.error}", flush=True)


def cmd_send(args: argparse.Namespace, config: SenderConfig) -> int:
    try:
        signers = _load_wallets(args.wallets)
        decimals = args.decimals if args.decimals is not None else config.token_decimals
        plan = TransferPlan.from_inputs(
            mint=args.mint,
            destination=args.destination,
            amount=args.amount,
            decimals=decimals,
            priority_fee=args.priority_fee,
        )
    except (OSError, MultisendError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if args.concurrency is not None:
        config = replace(config, concurrency=args.concurrency)
    print(
        f"Sending {plan.amount_raw} raw units of {plan.mint} to {plan.destination} "
        f"from {len(signers)} wallets (concurrency {config.concurrency})"
    )
    outcomes = asyncio.run(send_batch(signers, plan, config, on_result=_print_outcome))
    failed = [o for o in outcomes if not o.ok]
    print(f"Done: {len(outcomes) - len(failed)} confirmed, {len(failed)} failed")
    return EXIT_FAILED if failed else EXIT_OK


async def _fetch_balances(signers: list[SignerIdentity], config: SenderConfig) -> dict[str, int]:
    async with RelayClient(
        config.relay_api_base,
        config.relay_api_key,
        timeout_sec=config.relay_timeout_sec,
    ) as relay:
        return await relay.fetch_balances([str(s.pubkey) for s in signers])


def cmd_balances(args: argparse.Namespace, config: SenderConfig) -> int:
    try:
        signers = _load_wallets(args.wallets)
    except (OSError, MultisendError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE
    try:
        balances = asyncio.run(_fetch_balances(signers, config))
    except MultisendError as e:
        logger.error("balances_fetch_failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED
    for s in signers:
        address = str(s.pubkey)
        print(f"{s.name}  {address}  {balances.get(address, 0)}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multisend",
        description="Send the same SPL token transfer from many wallets in parallel.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    p_send = sub.add_parser("send", help="Transfer from every wallet to one destination")
    p_send.add_argument("--wallets", required=True, help="Wallet file (name:secret per line)")
    p_send.add_argument("--mint", required=True, help="Token mint address")
    p_send.add_argument("--destination", required=True, help="Recipient wallet address")
    p_send.add_argument("--amount", required=True, help="Amount per wallet, e.g. 1.25")
    p_send.add_argument("--decimals", type=int, default=None, help="Token decimals (default TOKEN_DECIMALS or 6)")
    p_send.add_argument("--priority-fee", type=int, default=0, help="Compute unit price in micro-lamports")
    p_send.add_argument("--concurrency", type=int, default=None, help="Parallel wallets, 1-30")
    p_send.set_defaults(func=cmd_send)

    p_bal = sub.add_parser("balances", help="Show SOL balances of the wallets")
    p_bal.add_argument("--wallets", required=True, help="Wallet file (name:secret per line)")
    p_bal.set_defaults(func=cmd_balances)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_settings()
    print_multisend_startup(args.command)
    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
