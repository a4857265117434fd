"""
Tests for the command line interface.
"""

from typer.testing import CliRunner

from conftest import FakeErc20
from spredd_bridge import __version__, cli
from spredd_bridge.cli import app, friendly_error
from spredd_bridge.errors import (
    ExecutionError,
    InsufficientFundsError,
    QuoteError,
    TransactionRejectedError,
)

runner = CliRunner()


def test_version() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_chains_lists_supported_networks() -> None:
    result = runner.invoke(app, ["chains"])

    assert result.exit_code == 0
    assert "8453" in result.output
    assert "Base" in result.output
    assert "polygonscan.com" in result.output


def test_friendly_error_messages() -> None:
    assert friendly_error(TransactionRejectedError("code 4001")) == "Transaction rejected by user"
    assert (
        friendly_error(InsufficientFundsError("insufficient funds"))
        == "Insufficient funds for transaction"
    )
    assert friendly_error(QuoteError("Invalid API response: missing route")) == (
        "Invalid API response: missing route"
    )
    assert friendly_error(ExecutionError("")) == "Bridge transaction failed"


def test_bridge_without_private_key(monkeypatch, tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("PRIVATE_KEY=\n")
    monkeypatch.delenv("PRIVATE_KEY", raising=False)

    result = runner.invoke(app, ["bridge", "10", "--yes", "--config", str(env_file)])

    assert result.exit_code == 1
    assert "PRIVATE_KEY" in result.output


def test_quote_refuses_zero_amount() -> None:
    result = runner.invoke(
        app, ["quote", "0", "--sender", "0x1234567890123456789012345678901234567890"]
    )

    assert result.exit_code == 1
    assert "must be positive" in result.output


def test_balance_rpc_failure(monkeypatch) -> None:
    failing = FakeErc20()
    failing.fail_reads = True
    monkeypatch.setattr(cli, "Erc20Client", lambda w3: failing)

    result = runner.invoke(
        app, ["balance", "0x1234567890123456789012345678901234567890"]
    )

    assert result.exit_code == 1
    assert "Error fetching balance: rpc unavailable" in result.output
    assert failing.closed
