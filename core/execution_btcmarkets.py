# core/execution_btcmarkets.py

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

import requests

from core.btcmarkets_utils import build_string_to_sign, sign_request
from core.credentials import Credentials
from core.exceptions import ExecutionError, HttpStatusError, MissingCredentialsError

logger = logging.getLogger(__name__)

BASE_URL = "https://api.btcmarkets.net"

APIKEY_HEADER = "apikey"
TIMESTAMP_HEADER = "timestamp"
SIGNATURE_HEADER = "signature"
ENCODING = "UTF-8"

Timeout = Union[float, Tuple[float, float]]


@dataclass(frozen=True)
class SignedRequest:
    """
    Requisição já assinada, válida apenas durante uma chamada.
    body=None -> GET, caso contrário POST.
    """
    path: str
    body: Optional[str]
    timestamp: str
    string_to_sign: str
    signature: str

    @property
    def method(self) -> str:
        return "GET" if self.body is None else "POST"

    def payload(self) -> Optional[bytes]:
        # mesmos bytes que foram assinados
        if self.body is None:
            return None
        return self.body.encode("utf-8")

    def headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Accept": "*/*",
            "Accept-Charset": ENCODING,
            "Content-Type": "application/json",
            APIKEY_HEADER: api_key,
            TIMESTAMP_HEADER: self.timestamp,
            SIGNATURE_HEADER: self.signature,
        }


def _now_ms() -> int:
    return int(time.time() * 1000)


class BTCMarketsExecutionClient:
    """
    Cliente de execução autenticado da BTC Markets.
    Cada chamada: assina -> envia -> lê a resposta, sem retry.
    Ordens duplicadas custam dinheiro, então retry é responsabilidade de quem chama.
    """

    def __init__(
        self,
        credentials: Credentials,
        base_url: str = BASE_URL,
        timeout: Timeout = (5.0, 30.0),
        session_factory: Callable[[], requests.Session] = requests.Session,
        clock: Callable[[], int] = _now_ms,
    ):
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session_factory = session_factory
        self._clock = clock

    # --------- Assinatura --------- #

    def prepare(self, path: str, body: Optional[str] = None) -> SignedRequest:
        """
        Gera timestamp, string canônica e assinatura para (path, body).
        Lança SigningError se as chaves estiverem ausentes ou inválidas.
        """
        if not self.credentials.is_complete():
            raise MissingCredentialsError(
                "API key e chave privada são obrigatórias para requisições autenticadas."
            )

        timestamp = str(self._clock())
        string_to_sign = build_string_to_sign(path, None, body, timestamp)
        logger.debug("stringToSign:\n%s", string_to_sign)

        signature = sign_request(self.credentials.private_key, string_to_sign)
        logger.debug("signature: %s", signature)

        return SignedRequest(
            path=path,
            body=body,
            timestamp=timestamp,
            string_to_sign=string_to_sign,
            signature=signature,
        )

    # --------- Execução HTTP --------- #

    def execute(self, path: str, body: Optional[str] = None) -> str:
        """
        Executa a chamada e devolve o corpo da resposta como texto.
        - status != 200 -> HttpStatusError
        - erro de rede  -> ExecutionError
        """
        signed = self.prepare(path, body)
        url = self.base_url + path

        logger.debug("Iniciando request.", extra={"method": signed.method, "path": path})
        started = time.monotonic()

        session = self._session_factory()
        response = None
        try:
            response = session.request(
                signed.method,
                url,
                headers=signed.headers(self.credentials.api_key),
                data=signed.payload(),
                timeout=self.timeout,
            )
            elapsed_ms = round((time.monotonic() - started) * 1000.0, 1)

            if response.status_code != 200:
                logger.error(
                    "Resposta HTTP de erro da BTC Markets.",
                    extra={
                        "method": signed.method,
                        "path": path,
                        "status": response.status_code,
                        "reason": response.reason,
                        "elapsed_ms": elapsed_ms,
                    },
                )
                raise HttpStatusError(response.status_code, response.reason, path)

            text = response.text
        except requests.RequestException as exc:
            logger.error(
                "Falha de transporte na chamada à BTC Markets.",
                extra={"method": signed.method, "path": path, "error": str(exc)},
            )
            raise ExecutionError(f"Falha ao executar chamada JSON em {path}: {exc}") from exc
        finally:
            if response is not None:
                response.close()
            session.close()

        logger.info(
            "Request executada.",
            extra={
                "method": signed.method,
                "path": path,
                "status": 200,
                "elapsed_ms": elapsed_ms,
            },
        )
        logger.debug("response:\n%s", text)
        return text
