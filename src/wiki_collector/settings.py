# src/wiki_collector/settings.py
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
load_dotenv()

API_BASE = os.getenv("WIKI_API_BASE", "https://terraria.wiki.gg/zh/api.php")
USER_AGENT = os.getenv(
    "WIKI_USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 WikiCollector/1.0",
)
DATA_DIR = os.getenv("DATA_DIR", "./data")

CARGO_PAGE_SIZE = int(os.getenv("CARGO_PAGE_SIZE", "500"))
CARGO_TABLE_LIST_LIMIT = int(os.getenv("CARGO_TABLE_LIST_LIMIT", "500"))
CARGO_REQUEST_DELAY = float(os.getenv("CARGO_REQUEST_DELAY", "1.5"))
CARGO_TABLE_COOLDOWN = float(os.getenv("CARGO_TABLE_COOLDOWN", "5"))
CARGO_SKIP_EXISTING = os.getenv("CARGO_SKIP_EXISTING", "0").lower() in ("1", "true", "yes")

ALLPAGES_LIMIT = int(os.getenv("ALLPAGES_LIMIT", "500"))
ALLPAGES_NAMESPACE = int(os.getenv("ALLPAGES_NAMESPACE", "0"))

WIKITEXT_BATCH_SIZE = int(os.getenv("WIKITEXT_BATCH_SIZE", "50"))
WIKITEXT_BATCH_DELAY = float(os.getenv("WIKITEXT_BATCH_DELAY", "2"))

PIPELINE_STAGE_PAUSE = float(os.getenv("PIPELINE_STAGE_PAUSE", "3"))

_timeout = os.getenv("API_REQUEST_TIMEOUT")
API_REQUEST_TIMEOUT = float(_timeout) if _timeout else None


@dataclass
class CrawlerConfig:
    """
    Configuração explícita de uma execução.

    Os valores padrão vêm do ambiente (ou do .env); os testes montam a sua
    própria instância com endpoint falso e atrasos zerados.
    """

    api_base: str = API_BASE
    user_agent: str = USER_AGENT
    data_dir: str = DATA_DIR
    request_timeout: Optional[float] = API_REQUEST_TIMEOUT

    # política de retry do cliente
    max_throttle_retries: int = 5
    max_error_retries: int = 3
    rate_limit_step: float = 10.0
    content_rate_limit_step: float = 5.0
    busy_delay: float = 5.0
    error_delay: float = 3.0

    # Cargo
    cargo_page_size: int = CARGO_PAGE_SIZE
    cargo_table_list_limit: int = CARGO_TABLE_LIST_LIMIT
    cargo_request_delay: float = CARGO_REQUEST_DELAY
    table_cooldown: float = CARGO_TABLE_COOLDOWN
    skip_existing_tables: bool = CARGO_SKIP_EXISTING

    # allpages
    allpages_limit: int = ALLPAGES_LIMIT
    allpages_namespace: int = ALLPAGES_NAMESPACE

    # wikitext
    batch_size: int = WIKITEXT_BATCH_SIZE
    batch_delay: float = WIKITEXT_BATCH_DELAY

    stage_pause: float = PIPELINE_STAGE_PAUSE

    @property
    def cargo_dir(self) -> Path:
        return Path(self.data_dir) / "cargo_tables"

    @property
    def page_map_file(self) -> Path:
        return Path(self.data_dir) / "all_pages.json"

    @property
    def wikitext_dir(self) -> Path:
        return Path(self.data_dir) / "raw_wikitext"
