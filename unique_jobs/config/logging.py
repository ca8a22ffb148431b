# unique_jobs/config/logging.py

import json
import logging
from datetime import datetime, timezone

from unique_jobs.core.context import digest_ctx, jid_ctx


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "digest": digest_ctx.get(),
            "jid": jid_ctx.get(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def configure_logging(log_level: str):
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger("unique_jobs")
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)
