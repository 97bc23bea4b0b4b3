"""
Tests for building transaction reports from raw receipts.
"""

import pytest

from tempo_daily.core.execution.models import ReceiptStatus, TxOutcome, TxReport
from tempo_daily.errors import ReceiptSchemaViolation

HASH = "0x" + "ab" * 32


def raw_receipt(**overrides):
    receipt = {
        "transactionHash": HASH,
        "status": "0x1",
        "blockNumber": "0x1f",
        "gasUsed": "0x5208",
        "effectiveGasPrice": "0x3b9aca00",
        "feeToken": "0x20c0000000000000000000000000000000000001",
        "feePayer": "0x1111111111111111111111111111111111111111",
    }
    receipt.update(overrides)
    return {k: v for k, v in receipt.items() if v is not None}


def test_quantities_become_decimal_strings():
    raw = raw_receipt()

    report = TxReport.from_receipt("transfer:pathUSD", HASH, f"https://explore.tempo.xyz/tx/{HASH}", raw)

    assert report.gas_used == "21000"
    assert report.effective_gas_price == "1000000000"
    assert report.fee_token == raw["feeToken"]
    assert report.fee_payer == raw["feePayer"]
    assert report.receipt_raw is raw


def test_to_dict_uses_report_keys():
    report = TxReport.from_receipt("transfer:pathUSD", HASH, "x", raw_receipt())

    assert list(report.to_dict()) == [
        "name",
        "hash",
        "explorer",
        "gasUsed",
        "effectiveGasPrice",
        "feeToken",
        "feePayer",
        "receiptRaw",
    ]


@pytest.mark.parametrize("missing", ["feeToken", "feePayer", "gasUsed", "effectiveGasPrice"])
def test_missing_field_is_named(missing):
    with pytest.raises(ReceiptSchemaViolation) as exc_info:
        TxReport.from_receipt("approve:AlphaUSD", HASH, "x", raw_receipt(**{missing: None}))

    assert f"missing required field: {missing}" in str(exc_info.value)
    assert "approve:AlphaUSD" in str(exc_info.value)


def test_malformed_quantity_rejected():
    with pytest.raises(ReceiptSchemaViolation) as exc_info:
        TxReport.from_receipt("t", HASH, "x", raw_receipt(gasUsed="0xzz"))

    assert "gasUsed is not a valid quantity" in str(exc_info.value)


def test_receipt_status():
    assert ReceiptStatus.from_rpc(raw_receipt()).succeeded
    assert not ReceiptStatus.from_rpc(raw_receipt(status="0x0")).succeeded


def test_outcome_step_label():
    report = TxReport.from_receipt("t", HASH, "x", raw_receipt())

    ok = TxOutcome.success("transfer:pathUSD", report)
    failed = TxOutcome.failure("transfer:pathUSD", "send", ReceiptSchemaViolation("boom"))

    assert ok.ok and ok.step_label == "transfer:pathUSD"
    assert not failed.ok
    assert failed.step_label == "transfer:pathUSD send"
