"""Logging setup: stdout handler with signup codes masked in rendered lines."""

from __future__ import annotations

import logging
import re
import sys

from signupcodes.domain.codes import mask_code

_RE_CODE_JSON = re.compile(r'("code"\s*:\s*")([^"]+)(")', re.IGNORECASE)
_RE_CODE_PY = re.compile(r"('code'\s*:\s*')([^']+)(')", re.IGNORECASE)
_RE_CODE_KV = re.compile(r"(?i)\b(code)=([A-Za-z0-9]{3,})")


class CodeMaskingFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        out = super().format(record)
        out = _RE_CODE_JSON.sub(lambda m: f"{m.group(1)}{mask_code(m.group(2))}{m.group(3)}", out)
        out = _RE_CODE_PY.sub(lambda m: f"{m.group(1)}{mask_code(m.group(2))}{m.group(3)}", out)
        out = _RE_CODE_KV.sub(lambda m: f"{m.group(1)}={mask_code(m.group(2))}", out)
        return out


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        CodeMaskingFormatter(
            fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    # Avoid duplicate handlers when the app is rebuilt (tests, reloads).
    root.handlers = [handler]
