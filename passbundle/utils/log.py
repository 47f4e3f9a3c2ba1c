"""
Structured logging utility for packaging runs
"""
import logging
import json
from datetime import datetime, timezone
from typing import Dict, Any, Optional


def get_logger(name: str) -> logging.Logger:
    """Get a logger with JSON-like structured output"""
    logger = logging.getLogger(name)
    return logger


def log_package_event(
    logger: logging.Logger,
    step: str,
    serial_number: str,
    ok: bool,
    extra: Optional[Dict[str, Any]] = None
):
    """
    Log a packaging step with structured format:
    {"at":"package","step":"...","serial":"...","ok":true/false,"extra":{...}}
    """
    log_data = {
        "at": "package",
        "step": step,
        "serial": serial_number,
        "ok": ok,
        "ts": datetime.now(timezone.utc).isoformat()
    }
    if extra:
        log_data["extra"] = extra

    log_msg = json.dumps(log_data, separators=(',', ':'), default=str)

    if ok:
        logger.info(log_msg)
    else:
        logger.warning(log_msg)
