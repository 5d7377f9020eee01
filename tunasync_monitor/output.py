"""
Output module for tunasync-monitor.

JSONL (newline-delimited JSON) output for piping status records into
other tools:

    from tunasync_monitor.output import emit

    emit(records, extra={"server": server})
"""

import json
import sys
from typing import Iterable, Any, Dict, Optional, TextIO


def to_data(item: Any) -> Dict[str, Any]:
    if hasattr(item, 'to_dict'):
        return item.to_dict()
    if isinstance(item, dict):
        return item
    return {'value': str(item)}


def emit(
    items: Iterable[Any],
    extra: Optional[Dict[str, Any]] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Emit items as JSONL.

    Args:
        items: Items to emit (objects with to_dict() or dicts)
        extra: Fields merged into every emitted object
        stream: Output stream (default: stdout)
    """
    stream = stream or sys.stdout
    for item in items:
        data = to_data(item)
        if extra:
            data = {**extra, **data}
        print(json.dumps(data, ensure_ascii=False), file=stream, flush=True)
