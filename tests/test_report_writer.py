import json

from tempo_daily.core.execution.models import TxReport
from tempo_daily.core.run.models import FailureReport, RunReport
from tempo_daily.reports import ReportWriter

HEADER = dict(
    date_jst="2026-03-14",
    time_jst="09:26:53",
    run_id="092653",
    chain_id=42431,
    rpc_url="https://rpc.moderato.tempo.xyz",
    wallet="0x1111111111111111111111111111111111111111",
    sink="0x2222222222222222222222222222222222222222",
)


def test_run_report_path_and_format(tmp_path):
    item = TxReport("transfer:pathUSD", "0xaa", "https://explore.tempo.xyz/tx/0xaa", "21000", "1", "0xfee", "0xpayer")
    report = RunReport(items=[item], **HEADER)

    path = ReportWriter(tmp_path / "reports").write_run_report(report)

    assert path == tmp_path / "reports" / "2026-03-14" / "run-092653.json"
    text = path.read_text()
    assert text.startswith('{\n  "dateJst": "2026-03-14"')
    assert json.loads(text)["items"][0]["hash"] == "0xaa"


def test_failure_report_path(tmp_path):
    report = FailureReport(step="verifyChain", preflight=[], error_message="chainId mismatch", **HEADER)

    path = ReportWriter(tmp_path).write_failure_report(report)

    assert path.name == "run-092653.failure.json"
    document = json.loads(path.read_text())
    assert document["step"] == "verifyChain"
    assert document["error"] == {"message": "chainId mismatch"}
