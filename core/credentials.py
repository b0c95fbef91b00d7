# core/credentials.py

import logging
import os
from dataclasses import dataclass
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "API_KEY="
PRIVATE_KEY_PREFIX = "PRIVATE_KEY="


@dataclass(frozen=True)
class Credentials:
    """
    Par de chaves da conta – NÃO muda durante a vida do cliente.
    - api_key: enviada no header "apikey".
    - private_key: segredo em Base64, usado só para assinar.
    """
    api_key: Optional[str] = None
    private_key: Optional[str] = None

    def is_complete(self) -> bool:
        return bool(self.api_key) and bool(self.private_key)

    def __repr__(self) -> str:
        masked = "***" if self.private_key else None
        return f"Credentials(api_key={self.api_key!r}, private_key={masked!r})"


def parse_credentials(lines: Iterable[str]) -> Credentials:
    """
    Lê linhas no formato KEY=valor.
    Só reconhece API_KEY= e PRIVATE_KEY=; o resto da linha é usado como está.
    Linhas desconhecidas são ignoradas.
    """
    api_key: Optional[str] = None
    private_key: Optional[str] = None

    for raw in lines:
        line = raw.rstrip("\r\n")
        if line.startswith(API_KEY_PREFIX):
            api_key = line[len(API_KEY_PREFIX):]
        elif line.startswith(PRIVATE_KEY_PREFIX):
            private_key = line[len(PRIVATE_KEY_PREFIX):]

    return Credentials(api_key=api_key, private_key=private_key)


def load_credentials(path: str) -> Credentials:
    """
    Carrega as chaves de um arquivo texto (ex.: keys.conf).
    Arquivo inexistente -> credenciais vazias; quem valida é o cliente de execução.
    """
    if not os.path.exists(path):
        logger.warning("Arquivo de chaves não encontrado.", extra={"keys_file": path})
        return Credentials()

    # bytes inválidos viram U+FFFD; linhas sem prefixo conhecido continuam ignoradas
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return parse_credentials(f)
