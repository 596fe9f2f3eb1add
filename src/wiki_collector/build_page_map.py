# src/wiki_collector/build_page_map.py
from typing import Iterator, List

from .settings import CrawlerConfig
from .utils.storage import write_json
from .wiki_api import RateLimitExhausted, WikiApiClient


class PageMapBuilder:
    """Enumera todas as páginas de um namespace via list=allpages + apcontinue."""

    def __init__(self, client: WikiApiClient, config: CrawlerConfig):
        self.client = client
        self.config = config

    def iter_titles(self) -> Iterator[str]:
        apcontinue = None
        while True:
            params = {
                "action": "query",
                "list": "allpages",
                "aplimit": self.config.allpages_limit,
                "apnamespace": self.config.allpages_namespace,
            }
            if apcontinue:
                params["apcontinue"] = apcontinue

            data = self.client.call(params)
            pages = ((data or {}).get("query") or {}).get("allpages")
            if pages is None:
                break

            for p in pages:
                title = p.get("title")
                if title:
                    yield title

            apcontinue = (data.get("continue") or {}).get("apcontinue")
            if not apcontinue:
                break

    def run(self) -> List[str]:
        print(
            f"[map] listando allpages(ns={self.config.allpages_namespace}) "
            f"aplimit={self.config.allpages_limit} ...",
            flush=True,
        )
        titles: List[str] = []
        for title in self.iter_titles():
            titles.append(title)
            if len(titles) % self.config.allpages_limit == 0:
                print(f"[map] {len(titles)} páginas até agora ...", flush=True)

        out_path = write_json(titles, self.config.page_map_file)
        print(f"[map] {len(titles)} páginas salvas em {out_path}", flush=True)
        return titles


def main() -> int:
    config = CrawlerConfig()
    try:
        PageMapBuilder(WikiApiClient(config), config).run()
    except RateLimitExhausted as e:
        print(f"[ERROR] mapa de páginas abortado: {e}", flush=True)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
