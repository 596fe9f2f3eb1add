# src/wiki_collector/dump_wikitext.py
import time
from pathlib import Path
from typing import Callable, Dict, List

from .settings import CrawlerConfig
from .utils.storage import ensure_dir, read_json, write_text
from .utils.text import chunked, page_filename
from .wiki_api import RateLimitExhausted, WikiApiClient


class MissingPrerequisiteFile(FileNotFoundError):
    """O arquivo de entrada de um estágio anterior não existe."""


def _revision_text(page: Dict) -> str:
    revisions = page.get("revisions") or []
    if not revisions:
        return ""
    rev = revisions[0]
    if "*" in rev:
        return rev.get("*") or ""
    # formatversion=2 / slots
    main = (rev.get("slots") or {}).get("main") or {}
    return main.get("content") or main.get("*") or ""


class WikitextDumper:
    """
    Baixa o wikitext bruto de todas as páginas do mapa, em lotes.

    Um lote cujos arquivos já existem todos é pulado sem requisição, o que
    torna a execução retomável.
    """

    def __init__(
        self,
        client: WikiApiClient,
        config: CrawlerConfig,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.config = config
        self.sleep = sleep

    def output_path(self, title: str) -> Path:
        return self.config.wikitext_dir / page_filename(title)

    def load_titles(self) -> List[str]:
        path = self.config.page_map_file
        if not path.exists():
            raise MissingPrerequisiteFile(
                f"{path} não encontrado; rode build_page_map primeiro"
            )
        return read_json(path)

    def has_output(self, title: str) -> bool:
        try:
            return self.output_path(title).exists()
        except OSError:
            # nome longo demais para o sistema de arquivos
            return False

    def batch_done(self, titles: List[str]) -> bool:
        return all(self.has_output(t) for t in titles)

    def download_batch(self, titles: List[str]) -> int:
        """Baixa um lote e devolve quantos arquivos foram gravados."""
        data = self.client.call(
            {
                "action": "query",
                "prop": "revisions",
                "rvprop": "content",
                "titles": "|".join(titles),
            },
            "POST",
        )
        pages = ((data or {}).get("query") or {}).get("pages")
        if not pages:
            print("[WARN] lote sem dados, seguindo", flush=True)
            return 0

        if isinstance(pages, dict):
            pages = list(pages.values())

        written = 0
        for page in pages:
            # página apagada/renomeada depois do mapa
            if "missing" in page or not page.get("title"):
                continue
            title = page["title"]
            try:
                write_text(_revision_text(page), self.output_path(title))
            except OSError as e:
                print(f"[WARN] não foi possível gravar '{title}': {e}", flush=True)
                continue
            written += 1

        print(f"   [batch] {written} páginas salvas", flush=True)
        return written

    def run(self) -> int:
        ensure_dir(self.config.wikitext_dir)
        titles = self.load_titles()
        total = len(titles)
        size = self.config.batch_size
        print(f"[wikitext] {total} títulos carregados", flush=True)

        written = 0
        for i, batch in enumerate(chunked(titles, size)):
            start = i * size
            print(f"[batch] páginas {start + 1}-{start + len(batch)} de {total}", flush=True)

            if self.batch_done(batch):
                print("   [skip] lote já baixado", flush=True)
                continue

            written += self.download_batch(batch)
            self.sleep(self.config.batch_delay)

        print(f"[done] {written} arquivos gravados em {self.config.wikitext_dir}", flush=True)
        return written


def main() -> int:
    config = CrawlerConfig()
    client = WikiApiClient(config, rate_limit_step=config.content_rate_limit_step)
    try:
        WikitextDumper(client, config).run()
    except MissingPrerequisiteFile as e:
        print(f"[ERROR] {e}", flush=True)
        return 1
    except ValueError as e:
        print(f"[ERROR] {config.page_map_file} inválido: {e}", flush=True)
        return 1
    except RateLimitExhausted as e:
        print(f"[ERROR] download de wikitext abortado: {e}", flush=True)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
