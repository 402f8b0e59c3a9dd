"""Telemetry reporting."""

from moverec.reporting.reporter import create_report_line, get_user_id, report_results

__all__ = ["create_report_line", "get_user_id", "report_results"]
