# core/logging_utils.py

import logging
import json
import sys
import os
from typing import Optional, Dict, Any

# Atributos padrão do LogRecord que não devem virar campos extras
_RESERVED_ATTRS = frozenset(
    (
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    )
)

# Campos que nunca podem aparecer em claro no log
SENSITIVE_KEYS = frozenset(("apikey", "api_key", "signature", "private_key", "secret"))

MASK = "***"


def mask_sensitive(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: (MASK if key.lower() in SENSITIVE_KEYS and value else value)
        for key, value in data.items()
    }


class JsonFormatter(logging.Formatter):
    """
    Formatter que gera uma linha JSON por registro, com os campos passados
    em extra= e as chaves sensíveis mascaradas.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "time": self.formatTime(record, self.datefmt),
        }

        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        }
        log_record.update(mask_sensitive(extras))

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_record, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", json_logs: bool = True, filename: Optional[str] = None) -> None:
    """
    Configura logging global do cliente.
    - level: "DEBUG" mostra stringToSign, assinatura e corpo das respostas
    - json_logs: se True, logs em JSON
    - filename: se fornecido, também grava em arquivo
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(numeric_level)

    # Limpa handlers existentes para evitar duplicação
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    if json_logs:
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if filename:
        log_dir = os.path.dirname(filename)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(filename, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
