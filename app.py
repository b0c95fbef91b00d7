# app.py

import os
import yaml
import logging
from typing import Dict, Any, Callable, List, Tuple

from core.client import BTCMarketsClient
from core.exceptions import BTCMarketsError
from core.execution_btcmarkets import BASE_URL
from core.logging_utils import setup_logging


DEFAULT_CONFIG_PATH = "config/settings_example.yaml"
ORDER_REQUIRED_KEYS = ("price", "volume")


def _apply_env_hardening(settings: Dict[str, Any]) -> Dict[str, Any]:
    """
    Regras extras de segurança:
    - demo.place_order default = False.
    - place_order só fica True se as variáveis de ambiente permitirem,
      porque /order/create envia uma ordem real.
    """
    demo = settings.setdefault("demo", {})
    demo.setdefault("place_order", False)

    allow_real = os.getenv("ALLOW_REAL_TRADING", "false").lower() == "true"
    confirm = os.getenv("CONFIRM_I_UNDERSTAND_RISK", "no").lower() == "yes"

    if not (allow_real and confirm):
        demo["place_order"] = False

    return settings


def load_settings(path: str | None = None) -> Dict[str, Any]:
    """
    Carrega o YAML de configuração.

    - Se `path` for fornecido, usa esse caminho relativo ao diretório do app.
    - Caso contrário, usa APP_CONFIG ou o arquivo de exemplo.
    - BTCMARKETS_KEYS_FILE sobrescreve btcmarkets.keys_file.
    """
    base_dir = os.path.dirname(os.path.abspath(__file__))

    cfg_rel_path = path or os.getenv("APP_CONFIG", DEFAULT_CONFIG_PATH)
    cfg_path = os.path.join(base_dir, cfg_rel_path)

    if not os.path.exists(cfg_path):
        raise FileNotFoundError(f"Arquivo de configuração não encontrado: {cfg_path}")

    with open(cfg_path, "r", encoding="utf-8") as f:
        settings = yaml.safe_load(f) or {}

    btcm = settings.setdefault("btcmarkets", {})
    keys_env = os.getenv("BTCMARKETS_KEYS_FILE")
    if keys_env:
        btcm["keys_file"] = keys_env

    return _apply_env_hardening(settings)


# ------------------------------------------------------------------ #
# Builders
# ------------------------------------------------------------------ #

def build_client(btcm_cfg: dict) -> BTCMarketsClient:
    timeout_cfg = btcm_cfg.get("timeout", {})
    timeout = (
        float(timeout_cfg.get("connect", 5.0)),
        float(timeout_cfg.get("read", 30.0)),
    )
    return BTCMarketsClient.from_config_file(
        btcm_cfg.get("keys_file", "keys.conf"),
        base_url=btcm_cfg.get("base_url", BASE_URL),
        timeout=timeout,
    )


def build_demo_calls(client: BTCMarketsClient, demo_cfg: dict) -> List[Tuple[str, Callable[[], str]]]:
    currency = demo_cfg.get("currency", "AUD")
    instrument = demo_cfg.get("instrument", "BTC")
    limit = demo_cfg.get("limit", 10)
    since = demo_cfg.get("since", 1)

    calls: List[Tuple[str, Callable[[], str]]] = [
        ("order_history", lambda: client.order_history(currency, instrument, limit, since)),
        ("order_history (default)", client.order_history),
        ("order_open", lambda: client.order_open(currency, instrument, limit, since)),
        ("order_open (default)", client.order_open),
        ("order_trade_history", lambda: client.order_trade_history(currency, instrument, limit, since)),
        ("order_trade_history (default)", client.order_trade_history),
        ("account_balance", client.account_balance),
    ]

    if demo_cfg.get("place_order", False):
        order = demo_cfg.get("order") or {}
        missing = [key for key in ORDER_REQUIRED_KEYS if order.get(key) is None]
        if missing:
            raise ValueError(f"Seção demo.order incompleta, faltando: {', '.join(missing)}")
        calls.append(
            (
                "create_new_order",
                lambda: client.create_new_order(
                    order.get("currency", currency),
                    order.get("instrument", instrument),
                    order["price"],
                    order["volume"],
                    order.get("order_side", "Bid"),
                    order.get("order_type", "Limit"),
                    order.get("client_request_id", "1"),
                ),
            )
        )

    return calls


# ------------------------------------------------------------------ #
# CLI de demonstração
# ------------------------------------------------------------------ #

def main():
    settings = load_settings()

    btcm_cfg = settings["btcmarkets"]
    logging_cfg = settings.get("logging", {})
    demo_cfg = settings["demo"]

    setup_logging(
        level=logging_cfg.get("level", "INFO"),
        json_logs=logging_cfg.get("json", True),
        filename=logging_cfg.get("file"),
    )
    logger = logging.getLogger("btcmarkets_demo")

    client = build_client(btcm_cfg)
    logger.info(
        "Inicializando demo BTC Markets.",
        extra={
            "base_url": btcm_cfg.get("base_url", BASE_URL),
            "keys_file": btcm_cfg.get("keys_file", "keys.conf"),
            "place_order": demo_cfg["place_order"],
        },
    )

    failures = 0
    for name, call in build_demo_calls(client, demo_cfg):
        try:
            print(call())
        except BTCMarketsError as exc:
            failures += 1
            logger.error("Chamada falhou.", extra={"call": name, "error": str(exc)})

    if failures:
        logger.warning("Demo finalizada com falhas.", extra={"failures": failures})
    return failures


if __name__ == "__main__":
    main()
