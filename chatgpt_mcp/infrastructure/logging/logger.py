import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from chatgpt_mcp.config.settings import settings


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if settings.log_redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, ensure_ascii=False)


def setup_logger(name: str = "chatgpt_mcp", log_dir: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(settings.log_level)
    logger.propagate = False

    # stdout 被 MCP stdio 协议占用，人类可读日志只能走 stderr
    sh = logging.StreamHandler(sys.stderr)
    sh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(sh)

    # 日志目录不可写时只保留 stderr，不能阻止服务启动
    target = Path(log_dir or settings.log_dir).expanduser()
    try:
        target.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(target / "chatgpt_mcp.log", encoding="utf-8")
    except OSError as exc:
        logger.warning(f"File logging disabled, cannot use {target}: {exc}")
        return logger
    fh.setFormatter(JsonFormatter())
    logger.addHandler(fh)
    return logger


logger = setup_logger()
