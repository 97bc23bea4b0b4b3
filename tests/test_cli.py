import json

import pytest

from eth_account import Account

from tempo_daily import cli
from tempo_daily.core.run.models import FailureReport, RunReport, RunResult, RunState

PRIVATE_KEY = "0x" + "4c" * 32


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("SINK_ADDRESS", "WALLET_PASSWORD", "WALLET_PASSWORD_FILE", "PRIVATE_KEY", "OUT_PATH"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("WALLET_ENC_PATH", str(tmp_path / "wallet.enc"))
    monkeypatch.setattr(cli, "setup_logging", lambda *_: None)


@pytest.fixture
def keystore(tmp_path):
    path = tmp_path / "wallet.enc"
    path.write_text(json.dumps(Account.encrypt(PRIVATE_KEY, "pw", kdf="pbkdf2", iterations=2)))
    return path


def test_no_command_prints_help(capsys):
    assert cli.main([]) == cli.EXIT_CONFIG_ERROR
    assert "usage" in capsys.readouterr().out


def test_run_without_sink_is_config_error(capsys):
    assert cli.main(["run"]) == cli.EXIT_CONFIG_ERROR
    assert "SINK_ADDRESS" in capsys.readouterr().err


def test_run_without_keystore_is_config_error(monkeypatch, capsys):
    monkeypatch.setenv("SINK_ADDRESS", "0x2222222222222222222222222222222222222222")
    monkeypatch.setenv("WALLET_PASSWORD", "pw")

    assert cli.main(["run"]) == cli.EXIT_CONFIG_ERROR
    assert "does not exist" in capsys.readouterr().err


def _stub_run(monkeypatch, result):
    class _StubOrchestrator:
        def __init__(self, *args, **kwargs):
            pass

        async def run(self):
            return result

    monkeypatch.setattr(cli, "RunOrchestrator", _StubOrchestrator)
    monkeypatch.setenv("SINK_ADDRESS", "0x2222222222222222222222222222222222222222")
    monkeypatch.setenv("WALLET_PASSWORD", "pw")


HEADER = dict(
    date_jst="2026-03-14",
    time_jst="09:26:53",
    run_id="092653",
    chain_id=42431,
    rpc_url="https://rpc.moderato.tempo.xyz",
    wallet="0x1111111111111111111111111111111111111111",
    sink="0x2222222222222222222222222222222222222222",
)


def test_failed_run_exits_one(monkeypatch, keystore, tmp_path, capsys):
    report = FailureReport(step="transfer:pathUSD send", preflight=[], error_message="nonce too low", **HEADER)
    _stub_run(monkeypatch, RunResult(RunState.FAILED, report, tmp_path / "x.failure.json"))

    assert cli.main(["run"]) == cli.EXIT_RUN_FAILED
    err = capsys.readouterr().err
    assert "transfer:pathUSD send" in err
    assert "nonce too low" in err


def test_successful_run_exits_zero(monkeypatch, keystore, tmp_path, capsys):
    report = RunReport(items=[], **HEADER)
    _stub_run(monkeypatch, RunResult(RunState.COMPLETED, report, tmp_path / "run.json"))

    assert cli.main(["run"]) == cli.EXIT_OK
    assert "Report:" in capsys.readouterr().out


def test_show_address(monkeypatch, keystore, capsys):
    monkeypatch.setenv("WALLET_PASSWORD", "pw")

    assert cli.main(["show-address"]) == cli.EXIT_OK
    assert capsys.readouterr().out.strip() == f"address={Account.from_key(PRIVATE_KEY).address}"


def test_show_address_wrong_password_exits_one(monkeypatch, keystore, capsys):
    monkeypatch.setenv("WALLET_PASSWORD", "nope")

    assert cli.main(["show-address"]) == cli.EXIT_RUN_FAILED
    assert "FATAL" in capsys.readouterr().err


def test_list_addresses_json(keystore, capsys):
    assert cli.main(["list-addresses", "--json"]) == cli.EXIT_OK

    entries = json.loads(capsys.readouterr().out)
    assert entries == [{"index": 0, "address": Account.from_key(PRIVATE_KEY).address}]


def test_list_addresses_plain(keystore, capsys):
    assert cli.main(["list-addresses"]) == cli.EXIT_OK
    assert capsys.readouterr().out.strip() == f"0: {Account.from_key(PRIVATE_KEY).address}"


def test_encrypt_wallet(monkeypatch, tmp_path, capsys):
    out = tmp_path / "secrets" / "new.enc"
    monkeypatch.setenv("PRIVATE_KEY", PRIVATE_KEY)
    monkeypatch.setenv("WALLET_PASSWORD", "pw")
    monkeypatch.setenv("OUT_PATH", str(out))

    assert cli.main(["encrypt-wallet"]) == cli.EXIT_OK
    assert out.exists()
    assert f"Wallet address: {Account.from_key(PRIVATE_KEY).address}" in capsys.readouterr().out


def test_unreadable_password_file_is_config_error(monkeypatch, keystore, tmp_path, capsys):
    secret = tmp_path / "pw.txt"
    secret.write_bytes(b"\xff\xfe")
    monkeypatch.setenv("SINK_ADDRESS", "0x2222222222222222222222222222222222222222")
    monkeypatch.setenv("WALLET_PASSWORD_FILE", str(secret))

    assert cli.main(["run"]) == cli.EXIT_CONFIG_ERROR
    assert "WALLET_PASSWORD_FILE" in capsys.readouterr().err
    assert not (tmp_path / "reports").exists()
