# core/btcmarkets_utils.py

import base64
import binascii
import hashlib
import hmac
from typing import Optional

from core.exceptions import SigningError


def build_string_to_sign(
    path: str,
    query_string: Optional[str],
    body: Optional[str],
    timestamp: str,
) -> str:
    """
    Monta a string canônica no formato esperado pela BTC Markets:

        path\\n[query_string\\n]timestamp\\n[body]

    - query_string deve vir já ordenada (key=value&key=value); não ordenamos aqui.
    - body entra por último, sem quebra de linha no final.
    """
    string_to_sign = path + "\n"
    if query_string is not None:
        string_to_sign += query_string + "\n"
    string_to_sign += str(timestamp) + "\n"
    if body is not None:
        string_to_sign += body
    return string_to_sign


def decode_private_key(private_key: Optional[str]) -> bytes:
    if not private_key:
        raise SigningError("Chave privada ausente ou vazia.")
    try:
        return base64.b64decode(private_key, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise SigningError(f"Chave privada não é Base64 válido: {exc}") from exc


def sign_request(private_key: Optional[str], string_to_sign: str) -> str:
    """
    Gera a assinatura HMAC-SHA512 da string canônica, codificada em Base64.
    A chave privada chega em Base64 (como fornecida pela exchange).
    """
    secret = decode_private_key(private_key)
    try:
        mac = hmac.new(secret, string_to_sign.encode("utf-8"), hashlib.sha512)
    except (TypeError, ValueError) as exc:
        raise SigningError(f"Falha ao inicializar HMAC-SHA512: {exc}") from exc
    return base64.b64encode(mac.digest()).decode("ascii")


def sign(
    path: str,
    query_string: Optional[str],
    body: Optional[str],
    timestamp: str,
    private_key: Optional[str],
) -> str:
    return sign_request(private_key, build_string_to_sign(path, query_string, body, timestamp))
