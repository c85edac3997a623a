"""High-level analyzer orchestration."""

from __future__ import annotations

from typing import Any

from .auth_parser import parse_authentication_results
from .config import AnalyzerConfig
from .esp_detector import detect_esp, is_reliable
from .header_utils import get_one, header_section, headers_to_map, parse_header_blocks
from .log_utils import log, set_log_file
from .models import AnalysisReport, DetectionContext, MessageAnalysis
from .providers import ProviderTable, load_provider_table
from .received_parser import WARN_USED_X_RECEIVED, parse_chain_from_blocks
from .timing import summarize_timing


class EspAnalyzer:
    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        providers: ProviderTable | None = None,
        verbose: bool = False,
    ) -> None:
        self._config = config or AnalyzerConfig()
        self._verbose = verbose
        self._debug = self._config.debug
        if self._config.log_file:
            set_log_file(self._config.log_file)
        if providers is None:
            providers = load_provider_table(self._config.provider_table_path)
        self._providers = providers

    @property
    def providers(self) -> ProviderTable:
        return self._providers

    def analyze_path(self, path: str, mailbox: str | None = None) -> AnalysisReport:
        log(self._verbose, f"Reading message from {path}")
        with open(path, "rb") as handle:
            data = handle.read()
        return self.analyze_text(data, mailbox=mailbox)

    def analyze_text(
        self, raw: str | bytes | None, mailbox: str | None = None
    ) -> AnalysisReport:
        section = header_section(raw)
        log(self._verbose, f"Header section is {len(section)} characters")
        blocks = parse_header_blocks(section)
        headers = headers_to_map(blocks)

        chain = parse_chain_from_blocks(blocks, verbose=self._verbose, debug=self._debug)
        for warning in chain.warnings:
            log(self._verbose, f"Receiving chain: {warning}")

        context = DetectionContext(
            mailbox=mailbox,
            used_x_received=WARN_USED_X_RECEIVED in chain.warnings,
        )
        message_id = get_one(blocks, "message-id")
        esp = detect_esp(
            headers,
            message_id=message_id,
            context=context,
            providers=self._providers,
            debug=self._debug,
        )
        log(self._verbose, f"Detected ESP {esp.provider} (confidence {esp.confidence:.2f})")

        date = get_one(blocks, "date")
        root = MessageAnalysis(
            message_id=message_id,
            subject=get_one(blocks, "subject"),
            from_addr=get_one(blocks, "from"),
            to_addr=get_one(blocks, "to"),
            date=date,
            headers=headers,
            chain=chain,
            auth_results=parse_authentication_results(headers.get("authentication-results")),
            esp=esp,
            timing=summarize_timing(chain, date),
        )
        return AnalysisReport(
            root=root,
            reliable=is_reliable(esp, self._config.reliable_confidence),
        )

    @staticmethod
    def report_as_dict(report: AnalysisReport) -> dict[str, Any]:
        root = report.root
        return {
            "root": {
                "message_id": root.message_id,
                "subject": root.subject,
                "from_addr": root.from_addr,
                "to_addr": root.to_addr,
                "date": root.date,
                "receiving_chain": root.chain.to_dict(),
                "auth_results": root.auth_results.to_dict(),
                "esp": root.esp.to_dict(),
                "timing": root.timing,
                "headers": root.headers,
            },
            "reliable": report.reliable,
        }
