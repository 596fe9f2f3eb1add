# src/wiki_collector/wiki_api.py
import time
from typing import Callable, Dict, Optional

import requests

from .settings import CrawlerConfig

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded;charset=UTF-8"

# códigos de erro da API que significam "banco ocupado, tente de novo"
BUSY_CODES = {"maxlag"}


class WikiApiError(Exception):
    """Erro base do cliente da API."""


class ApiResponseError(WikiApiError):
    """Resposta HTTP não-2xx ou payload com bloco "error" da API."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class RateLimitExhausted(WikiApiError):
    """O servidor continuou limitando (429/maxlag) depois de todas as tentativas."""


class WikiApiClient:
    """
    Cliente mínimo para o api.php do MediaWiki, com retry e backoff.

    Política por chamada:
      - HTTP 429: espera (tentativa + 1) * rate_limit_step e tenta de novo;
        depois de max_throttle_retries tentativas levanta RateLimitExhausted.
      - erro "maxlag" (banco ocupado): espera busy_delay fixo, consumindo o
        mesmo orçamento do 429.
      - qualquer outro erro (rede, HTTP, JSON inválido, erro da API):
        espera error_delay e tenta até max_error_retries vezes; depois
        devolve None ("sem dados", quem chamou decide pular).

    `session` e `sleep` são injetáveis para testes.
    """

    def __init__(
        self,
        config: CrawlerConfig,
        *,
        rate_limit_step: Optional[float] = None,
        session=None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.rate_limit_step = (
            config.rate_limit_step if rate_limit_step is None else rate_limit_step
        )
        self.session = session if session is not None else requests.Session()
        self.sleep = sleep

    def _send(self, params: Dict, method: str):
        payload = {"format": "json", **params}
        headers = {"User-Agent": self.config.user_agent}
        if method == "POST":
            headers["Content-Type"] = FORM_CONTENT_TYPE
            return self.session.post(
                self.config.api_base,
                data=payload,
                headers=headers,
                timeout=self.config.request_timeout,
            )
        return self.session.get(
            self.config.api_base,
            params=payload,
            headers=headers,
            timeout=self.config.request_timeout,
        )

    def _throttle_wait(self, throttled: int, wait: float, reason: str) -> None:
        if throttled >= self.config.max_throttle_retries:
            raise RateLimitExhausted(
                f"{reason}: {throttled} tentativas esgotadas, desistindo da requisição"
            )
        print(f"[WARN] {reason}, aguardando {wait:g}s ...", flush=True)
        self.sleep(wait)

    def call(self, params: Dict, method: str = "GET") -> Optional[Dict]:
        method = method.upper()
        throttled = 0
        failures = 0

        while True:
            try:
                resp = self._send(params, method)

                if resp.status_code == 429:
                    wait = (throttled + 1) * self.rate_limit_step
                    self._throttle_wait(throttled, wait, "HTTP 429 (rate limit)")
                    throttled += 1
                    continue

                resp.raise_for_status()
                data = resp.json()
                if not isinstance(data, dict):
                    raise ApiResponseError(f"payload inesperado: {type(data).__name__}")

                err = data.get("error")
                if err:
                    code = err.get("code") if isinstance(err, dict) else str(err)
                    if code in BUSY_CODES:
                        self._throttle_wait(throttled, self.config.busy_delay, f"servidor ocupado ({code})")
                        throttled += 1
                        continue
                    raise ApiResponseError(f"API error: {code}", code=code)

                return data

            except (requests.RequestException, ValueError, ApiResponseError) as e:
                print(f"[WARN] requisição falhou: {e}", flush=True)
                if failures >= self.config.max_error_retries:
                    print(
                        f"[ERROR] sem dados para action={params.get('action')} "
                        f"após {failures} retries",
                        flush=True,
                    )
                    return None
                failures += 1
                print(
                    f"[retry] aguardando {self.config.error_delay:g}s "
                    f"({failures}/{self.config.max_error_retries})",
                    flush=True,
                )
                self.sleep(self.config.error_delay)
