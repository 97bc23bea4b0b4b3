#!/usr/bin/env python3
"""Command line entry points for the Tempo daily runner"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from tempo_daily.config import KeystoreExportSettings, Settings, WalletSettings, load_settings
from tempo_daily.core.run import RunOrchestrator, RunReport
from tempo_daily.errors import ConfigError, WalletLoadError
from tempo_daily.logging_config import setup_logging
from tempo_daily.providers.rpc import TempoRpcClient
from tempo_daily.reports import ReportWriter
from tempo_daily.wallet import encrypt_keystore, keystore_addresses, load_account, load_signer

EXIT_OK = 0
EXIT_RUN_FAILED = 1
EXIT_CONFIG_ERROR = 2


def print_run_summary(report: RunReport) -> None:
    """Pretty print the confirmed transactions of a run"""
    print(f"\nDaily run {report.date_jst} {report.time_jst} JST")
    print("=" * 50)
    print(f"Wallet: {report.wallet}")
    print(f"Sink:   {report.sink}")
    for i, item in enumerate(report.items, 1):
        print(f"{i:2d}. {item.name}")
        print(f"    {item.explorer}")
        print(f"    gasUsed={item.gas_used} feeToken={item.fee_token} feePayer={item.fee_payer}")


async def cli_run() -> int:
    """Run the daily operation plan once"""
    settings = load_settings(Settings)
    setup_logging(settings.log_level)
    settings.ensure_keystore_exists()
    password = settings.resolve_wallet_password()

    ledger = TempoRpcClient(settings.tempo_rpc_url, timeout_seconds=settings.rpc_timeout_seconds)
    try:
        orchestrator = RunOrchestrator(
            settings,
            ledger,
            lambda: load_signer(settings.wallet_enc_path, password, ledger, settings.tempo_chain_id),
            ReportWriter(settings.report_base_dir),
        )
        result = await orchestrator.run()
    finally:
        await ledger.close()

    if not result.ok:
        print(f"Run failed at step: {result.report.step}", file=sys.stderr)
        print(result.report.error_message, file=sys.stderr)
        if result.report_path:
            print(f"Failure report: {result.report_path}", file=sys.stderr)
        return EXIT_RUN_FAILED

    print_run_summary(result.report)
    if result.report_path is None:
        print("Run report could not be written", file=sys.stderr)
        return EXIT_RUN_FAILED
    print(f"\nReport: {result.report_path}")
    return EXIT_OK


def cli_show_address() -> int:
    """Decrypt the keystore and print its address"""
    settings = load_settings(WalletSettings)
    setup_logging(settings.log_level)
    password = settings.resolve_wallet_password()
    account = load_account(settings.wallet_enc_path, password)
    print(f"address={account.address}")
    return EXIT_OK


def cli_list_addresses(as_json: bool = False) -> int:
    """List keystore addresses without decrypting"""
    settings = load_settings(WalletSettings)
    entries = keystore_addresses(settings.wallet_enc_path)
    if as_json:
        print(json.dumps(entries))
        return EXIT_OK
    for entry in entries:
        print(f"{entry['index']}: {entry['address']}")
    return EXIT_OK


def cli_encrypt_wallet() -> int:
    """Encrypt PRIVATE_KEY with WALLET_PASSWORD into OUT_PATH"""
    settings = load_settings(KeystoreExportSettings)
    try:
        address = encrypt_keystore(settings.private_key, settings.wallet_password, settings.out_path)
    except ValueError as e:
        raise ConfigError(f"PRIVATE_KEY is not a valid private key: {e}")
    print(f"Encrypted keystore written to {settings.out_path}")
    print(f"Wallet address: {address}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tempo daily transaction runner")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Run the daily operation plan once")
    subparsers.add_parser("show-address", help="Decrypt the keystore and print its address")

    list_parser = subparsers.add_parser("list-addresses", help="List keystore addresses")
    list_parser.add_argument("--json", action="store_true", help="Print entries as a JSON array")

    subparsers.add_parser("encrypt-wallet", help="Write an encrypted keystore from PRIVATE_KEY")

    return parser


async def dispatch(args: argparse.Namespace) -> int:
    if args.command == "run":
        return await cli_run()
    if args.command == "show-address":
        return cli_show_address()
    if args.command == "list-addresses":
        return cli_list_addresses(args.json)
    if args.command == "encrypt-wallet":
        return cli_encrypt_wallet()
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_CONFIG_ERROR

    try:
        return asyncio.run(dispatch(args))
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except WalletLoadError as e:
        print(f"FATAL: {e}", file=sys.stderr)
        return EXIT_RUN_FAILED


if __name__ == "__main__":
    sys.exit(main())
