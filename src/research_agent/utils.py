"""Utilities for result persistence."""

import logging
import re
import time
from pathlib import Path

from .research.models import ResearchContext

logger = logging.getLogger(__name__)


def save_research_result(context: ResearchContext, session_id: str, directory: Path) -> Path:
    """Save a completed research context as JSON.

    The file is named `research_<session_id>_<epoch_ms>.json`.

    Args:
        context: The finished research context.
        session_id: Session identifier of the pipeline that produced it.
        directory: Results directory (created if missing).

    Returns:
        Path to the saved file.
    """
    directory.mkdir(parents=True, exist_ok=True)
    safe_session = re.sub(r"[^\w\-]", "_", session_id)
    base = f"research_{safe_session}_{int(time.time() * 1000)}"
    file_path = directory / f"{base}.json"
    # Two calls in the same millisecond get a numeric suffix.
    if file_path.exists():
        for i in range(1, 10_000):
            candidate = directory / f"{base}_{i}.json"
            if not candidate.exists():
                file_path = candidate
                break
        else:
            raise RuntimeError("Failed to allocate a unique result filename after 10,000 attempts")

    file_path.write_text(context.model_dump_json(indent=2), encoding="utf-8")
    logger.info(f"Saved research result to {file_path}")
    return file_path
