# core/client.py

import json
import logging
from typing import Any, Dict, Optional

from core.credentials import Credentials, load_credentials
from core.execution_btcmarkets import BASE_URL, BTCMarketsExecutionClient, Timeout

logger = logging.getLogger(__name__)

ORDER_CREATE_PATH = "/order/create"
ORDER_HISTORY_PATH = "/order/history"
ORDER_OPEN_PATH = "/order/open"
ORDER_TRADE_HISTORY_PATH = "/order/trade/history"
ACCOUNT_BALANCE_PATH = "/account/balance"

DEFAULT_CURRENCY = "AUD"
DEFAULT_INSTRUMENT = "BTC"
DEFAULT_LIMIT = 10
DEFAULT_SINCE = 1


def _to_json(payload: Dict[str, Any]) -> str:
    # ordem de inserção preservada, sem espaços: é exatamente o que será assinado
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def _require_int(name: str, value: Any) -> int:
    # valores em unidades mínimas: float ou bool mudariam a ordem sem aviso
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} deve ser int, recebido {type(value).__name__}: {value!r}")
    return value


def build_order_query_body(
    currency: str = DEFAULT_CURRENCY,
    instrument: str = DEFAULT_INSTRUMENT,
    limit: int = DEFAULT_LIMIT,
    since: int = DEFAULT_SINCE,
) -> str:
    return _to_json(
        {
            "currency": currency,
            "instrument": instrument,
            "limit": _require_int("limit", limit),
            "since": _require_int("since", since),
        }
    )


def build_new_order_body(
    currency: str,
    instrument: str,
    price: int,
    volume: int,
    order_side: str,
    order_type: str,
    client_request_id: str,
) -> str:
    """
    Corpo do /order/create.
    price e volume já vêm em unidades mínimas da exchange (inteiros);
    nenhuma conversão de escala é feita aqui.
    """
    return _to_json(
        {
            "currency": currency,
            "instrument": instrument,
            "price": _require_int("price", price),
            "volume": _require_int("volume", volume),
            "orderSide": order_side,
            "ordertype": order_type,
            "clientRequestId": str(client_request_id),
        }
    )


class BTCMarketsClient:
    """
    Interface pública da API autenticada da BTC Markets.

    Cada método escolhe o path, monta o JSON e delega ao
    BTCMarketsExecutionClient. Os retornos são o corpo da resposta
    como texto, sem parsing.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        private_key: Optional[str] = None,
        credentials: Optional[Credentials] = None,
        base_url: str = BASE_URL,
        timeout: Timeout = (5.0, 30.0),
        execution_client: Optional[BTCMarketsExecutionClient] = None,
    ):
        if execution_client is None:
            if credentials is None:
                credentials = Credentials(api_key=api_key, private_key=private_key)
            execution_client = BTCMarketsExecutionClient(
                credentials=credentials,
                base_url=base_url,
                timeout=timeout,
            )
        self.exec_client = execution_client

    @classmethod
    def from_config_file(cls, keys_file: str, **kwargs) -> "BTCMarketsClient":
        """Cria o cliente lendo API_KEY/PRIVATE_KEY de um arquivo texto."""
        return cls(credentials=load_credentials(keys_file), **kwargs)

    @property
    def credentials(self) -> Credentials:
        return self.exec_client.credentials

    def send_request(self, path: str, body: Optional[str] = None) -> str:
        return self.exec_client.execute(path, body)

    # --------- Conta --------- #

    def account_balance(self) -> str:
        return self.send_request(ACCOUNT_BALANCE_PATH)

    # --------- Ordens (consultas) --------- #

    def order_history(
        self,
        currency: str = DEFAULT_CURRENCY,
        instrument: str = DEFAULT_INSTRUMENT,
        limit: int = DEFAULT_LIMIT,
        since: int = DEFAULT_SINCE,
    ) -> str:
        return self.send_request(
            ORDER_HISTORY_PATH, build_order_query_body(currency, instrument, limit, since)
        )

    def order_open(
        self,
        currency: str = DEFAULT_CURRENCY,
        instrument: str = DEFAULT_INSTRUMENT,
        limit: int = DEFAULT_LIMIT,
        since: int = DEFAULT_SINCE,
    ) -> str:
        return self.send_request(
            ORDER_OPEN_PATH, build_order_query_body(currency, instrument, limit, since)
        )

    def order_trade_history(
        self,
        currency: str = DEFAULT_CURRENCY,
        instrument: str = DEFAULT_INSTRUMENT,
        limit: int = DEFAULT_LIMIT,
        since: int = DEFAULT_SINCE,
    ) -> str:
        return self.send_request(
            ORDER_TRADE_HISTORY_PATH,
            build_order_query_body(currency, instrument, limit, since),
        )

    # --------- Ordens (envio) --------- #

    def create_new_order(
        self,
        currency: str,
        instrument: str,
        price: int,
        volume: int,
        order_side: str,
        order_type: str,
        client_request_id: str,
    ) -> str:
        body = build_new_order_body(
            currency, instrument, price, volume, order_side, order_type, client_request_id
        )
        logger.info(
            "Enviando ordem para BTC Markets.",
            extra={
                "currency": currency,
                "instrument": instrument,
                "order_side": order_side,
                "order_type": order_type,
                "client_request_id": str(client_request_id),
            },
        )
        return self.send_request(ORDER_CREATE_PATH, body)
