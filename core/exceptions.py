# core/exceptions.py

from typing import Optional


class BTCMarketsError(Exception):
    """Erro base de qualquer chamada à API da BTC Markets."""
    pass


class SigningError(BTCMarketsError):
    """
    Falha ao gerar a assinatura (chave privada inválida, HMAC indisponível).
    A requisição NÃO é enviada quando esta exceção é lançada.
    """
    pass


class MissingCredentialsError(SigningError):
    """API key ou chave privada ausente no momento da requisição."""
    pass


class HttpStatusError(BTCMarketsError):
    """
    Resposta HTTP com status diferente de 200.
    O corpo da resposta é descartado.
    """

    def __init__(self, status_code: int, reason: str, path: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason
        self.path = path
        msg = f"HTTP {status_code} {reason}"
        if path:
            msg += f" em {path}"
        super().__init__(msg)


class ExecutionError(BTCMarketsError):
    """Falha de transporte (DNS, conexão, timeout, I/O)."""
    pass
