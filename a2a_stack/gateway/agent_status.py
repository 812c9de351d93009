import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from a2a_stack.config.constants import ONLINE_THRESHOLD_MS

SEVERITY_ERROR = re.compile(r"err|error", re.IGNORECASE)
LINE_ERROR = re.compile(r"(^|\W)error(\W|$)", re.IGNORECASE)
TO_LABELS = ("a2a_to", "a2a.to")


@dataclass(frozen=True)
class LogLine:
    ts_ms: int
    labels: Dict[str, str]
    line: str


@dataclass(frozen=True)
class AgentStatus:
    service_name: str
    online: bool
    last_ts: Optional[int]
    last_line: str
    last_to: str
    error_count: int
    line_count: int


def flatten_streams(payload: Dict[str, Any]) -> List[LogLine]:
    """Stream results (timestamps already in ms) -> lines, newest first."""
    lines = []
    for stream in payload.get("data", {}).get("result", []) or []:
        labels = stream.get("stream", {}) or {}
        for value in stream.get("values", []) or []:
            if not isinstance(value, (list, tuple)) or len(value) < 2:
                raise ValueError(f"stream value is not a [timestamp, line] pair: {value!r}")
            lines.append(LogLine(ts_ms=int(value[0]), labels=labels, line=str(value[1])))
    lines.sort(key=lambda l: l.ts_ms, reverse=True)
    return lines


def is_online(newest_ts_ms: Optional[int], current_ms: int, threshold_ms: int = ONLINE_THRESHOLD_MS) -> bool:
    if newest_ts_ms is None:
        return False
    return current_ms - newest_ts_ms < threshold_ms


def is_error_line(line: LogLine) -> bool:
    severity = line.labels.get("severity")
    if severity and SEVERITY_ERROR.search(severity):
        return True
    return bool(LINE_ERROR.search(line.line))


def count_errors(lines: List[LogLine]) -> int:
    return sum(1 for line in lines if is_error_line(line))


def summarize(service_name: str, lines: List[LogLine], current_ms: int) -> AgentStatus:
    if not lines:
        return AgentStatus(service_name, False, None, "", "", 0, 0)
    newest = lines[0]
    last_to = next((newest.labels[k] for k in TO_LABELS if newest.labels.get(k)), "")
    return AgentStatus(
        service_name=service_name,
        online=is_online(newest.ts_ms, current_ms),
        last_ts=newest.ts_ms,
        last_line=newest.line,
        last_to=last_to,
        error_count=count_errors(lines),
        line_count=len(lines),
    )
