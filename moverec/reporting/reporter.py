"""Tab-separated telemetry records for refactoring decisions.

Each record is one line::

    timestamp<TAB>recorder_id<TAB>recorder_version<TAB>user_id<TAB>session_id<TAB>bucket<TAB>action_type<TAB>json

The field order is fixed and the timestamp is in epoch milliseconds.
"""

import functools
import json
import os
import time
import uuid
from typing import Any

from moverec.config.models import ReportingConfig
from moverec.core.algorithms import AlgorithmResult

USER_ID_ENV = "MOVEREC_USER_ID"
DEFAULT_SESSION_ID = "random_session_id"


@functools.lru_cache(maxsize=1)
def _installation_id() -> str:
    return str(uuid.uuid4())


def get_user_id() -> str:
    """
    Return the reporting user id.

    Priority:
    1. MOVEREC_USER_ID env var (set by the caller or a .env file)
    2. A random id, stable for the lifetime of the process
    """
    return os.getenv(USER_ID_ENV) or _installation_id()


def create_report_line(
    recorder_id: str,
    recorder_version: str,
    action_type: str,
    data: Any,
    session_id: str = DEFAULT_SESSION_ID,
    bucket: int = -1,
    user_id: str | None = None,
    timestamp: int | None = None,
) -> str:
    """
    Format one telemetry record.

    Args:
        recorder_id: Recorder identifier
        recorder_version: Recorder version
        action_type: Kind of decision being recorded
        data: JSON-serializable payload
        session_id: Session identifier
        bucket: Experiment bucket
        user_id: Reporting user id (defaults to get_user_id())
        timestamp: Epoch milliseconds (defaults to now)

    Returns:
        The record, without a trailing newline
    """
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    if user_id is None:
        user_id = get_user_id()
    payload = json.dumps(data, separators=(",", ":"))
    return "%d\t%s\t%s\t%s\t%s\t%d\t%s\t%s" % (
        timestamp,
        recorder_id,
        recorder_version,
        user_id,
        session_id,
        bucket,
        action_type,
        payload,
    )


def report_results(
    results: list[AlgorithmResult],
    config: ReportingConfig,
    action_type: str = "refactorings.calculated",
) -> list[str]:
    """One record per algorithm result."""
    return [
        create_report_line(
            config.recorder_id,
            config.recorder_version,
            action_type,
            result.to_dict(),
            session_id=config.session_id,
            bucket=config.bucket,
        )
        for result in results
    ]
