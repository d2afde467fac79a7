"""
Tests for the multisend command line: wallet file loading, exit codes, output.
Network calls are replaced with async fakes.
"""

from __future__ import annotations

import json

import pytest

from multisend import cli
from multisend.engine.models import SendOutcome

from conftest import DESTINATION, MINT, make_signer


@pytest.fixture(autouse=True)
def relay_env(monkeypatch):
    monkeypatch.setenv("RELAY_API_BASE", "http://relay.test")
    monkeypatch.delenv("RELAY_API_KEY", raising=False)
    monkeypatch.delenv("TOKEN_DECIMALS", raising=False)
    monkeypatch.delenv("SEND_CONCURRENCY", raising=False)


@pytest.fixture
def wallet_file(tmp_path):
    lines = [
        f"alice:{json.dumps(list(bytes(make_signer(1).keypair)))}",
        f"bob:{make_signer(2).keypair}",
        "",
        json.dumps(list(bytes(make_signer(3).keypair))),
    ]
    path = tmp_path / "wallets.txt"
    path.write_text("\n".join(lines), encoding="utf-8")
    return path


def _send_args(wallet_file, *extra):
    return [
        "send",
        "--wallets",
        str(wallet_file),
        "--mint",
        MINT,
        "--destination",
        DESTINATION,
        "--amount",
        "1.5",
        *extra,
    ]


def test_send_all_confirmed(monkeypatch, capsys, wallet_file):
    calls = {}

    async def fake_send_batch(signers, plan, config, *, on_result=None, cancel_event=None):
        calls["names"] = [s.name for s in signers]
        calls["plan"] = plan
        calls["config"] = config
        outcomes = [SendOutcome(wallet=s.name, signature=f"sig-{s.name}") for s in signers]
        for o in outcomes:
            on_result(o)
        return outcomes

    monkeypatch.setattr(cli, "send_batch", fake_send_batch)
    code = cli.main(_send_args(wallet_file, "--concurrency", "50"))

    assert code == cli.EXIT_OK
    assert calls["names"] == ["alice", "bob", "wallet-3"]
    assert calls["plan"].amount_raw == 1_500_000
    assert calls["plan"].priority_fee_rate in (None, 0)
    assert calls["config"].concurrency == 30
    assert calls["config"].relay_api_base == "http://relay.test"
    out = capsys.readouterr().out
    assert "ok    alice  sig-alice" in out
    assert "Done: 3 confirmed, 0 failed" in out


def test_send_with_decimals_and_fee(monkeypatch, wallet_file):
    seen = {}

    async def fake_send_batch(signers, plan, config, *, on_result=None, cancel_event=None):
        seen["plan"] = plan
        return [SendOutcome(wallet=s.name, signature="sig") for s in signers]

    monkeypatch.setattr(cli, "send_batch", fake_send_batch)
    assert cli.main(_send_args(wallet_file, "--decimals", "9", "--priority-fee", "5000")) == cli.EXIT_OK
    assert seen["plan"].amount_raw == 1_500_000_000
    assert seen["plan"].priority_fee_rate == 5000


def test_send_partial_failure_exit_code(monkeypatch, capsys, wallet_file):
    async def fake_send_batch(signers, plan, config, *, on_result=None, cancel_event=None):
        outcomes = [SendOutcome(wallet=signers[0].name, signature="sig")]
        outcomes += [SendOutcome(wallet=s.name, error="sendRaw failed: 502") for s in signers[1:]]
        for o in outcomes:
            on_result(o)
        return outcomes

    monkeypatch.setattr(cli, "send_batch", fake_send_batch)
    assert cli.main(_send_args(wallet_file)) == cli.EXIT_FAILED
    out = capsys.readouterr().out
    assert "FAIL  bob  sendRaw failed: 502" in out
    assert "Done: 1 confirmed, 2 failed" in out


@pytest.mark.parametrize("amount", ["-1", "abc", "1.2.3", ""])
def test_send_invalid_amount_is_usage_error(monkeypatch, capsys, wallet_file, amount):
    async def fail_send_batch(*args, **kwargs):
        raise AssertionError("send_batch must not be called")

    monkeypatch.setattr(cli, "send_batch", fail_send_batch)
    args = _send_args(wallet_file)
    args[args.index("--amount") + 1] = amount
    assert cli.main(args) == cli.EXIT_USAGE
    assert "Error:" in capsys.readouterr().err


def test_send_negative_decimals_is_usage_error(monkeypatch, capsys, wallet_file):
    monkeypatch.setattr(cli, "send_batch", None)
    assert cli.main(_send_args(wallet_file, "--decimals", "-1")) == cli.EXIT_USAGE
    assert "decimals" in capsys.readouterr().err


def test_send_invalid_destination_is_usage_error(monkeypatch, wallet_file):
    monkeypatch.setattr(cli, "send_batch", None)
    args = _send_args(wallet_file)
    args[args.index("--destination") + 1] = "not-a-pubkey"
    assert cli.main(args) == cli.EXIT_USAGE


def test_send_missing_wallet_file(tmp_path):
    assert cli.main(_send_args(tmp_path / "missing.txt")) == cli.EXIT_USAGE


def test_send_empty_wallet_file(tmp_path, capsys):
    path = tmp_path / "empty.txt"
    path.write_text("\n\n", encoding="utf-8")
    assert cli.main(_send_args(path)) == cli.EXIT_USAGE
    assert "No wallets found" in capsys.readouterr().err


def test_balances(monkeypatch, capsys, wallet_file):
    async def fake_fetch(signers, config):
        return {str(signers[0].pubkey): 2_000_000_000}

    monkeypatch.setattr(cli, "_fetch_balances", fake_fetch)
    assert cli.main(["balances", "--wallets", str(wallet_file)]) == cli.EXIT_OK
    out = capsys.readouterr().out
    assert f"alice  {make_signer(1).pubkey}  2000000000" in out
    assert f"bob  {make_signer(2).pubkey}  0" in out


def test_balances_relay_failure(monkeypatch, wallet_file):
    from multisend.core.exceptions import UpstreamUnavailable

    async def fake_fetch(signers, config):
        raise UpstreamUnavailable("/balances timed out")

    monkeypatch.setattr(cli, "_fetch_balances", fake_fetch)
    assert cli.main(["balances", "--wallets", str(wallet_file)]) == cli.EXIT_FAILED


def test_subcommand_required():
    with pytest.raises(SystemExit) as exc:
        cli.main([])
    assert exc.value.code == 2
