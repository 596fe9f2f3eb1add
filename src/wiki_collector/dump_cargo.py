# src/wiki_collector/dump_cargo.py
import time
from typing import Any, Callable, Dict, List, Optional

from .settings import CrawlerConfig
from .utils.storage import ensure_dir, write_json
from .wiki_api import RateLimitExhausted, WikiApiClient

PAGE_NAME_FIELD = "_pageName"
INTERNAL_TABLE_PREFIX = "_"


def _table_name(entry: Any) -> Optional[str]:
    # cargotables pode devolver strings ou pequenos registros
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        return entry.get("Name") or entry.get("title") or entry.get("name")
    return None


def _field_name(entry: Any) -> Optional[str]:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        return entry.get("Name") or entry.get("field")
    return None


class CargoDumper:
    """
    Baixa todas as tabelas Cargo da wiki, um arquivo JSON por tabela.

    Para cada tabela: resolve os campos (action=cargofields), pagina as
    linhas (action=cargoquery, ordenadas por _pageName) e grava o array
    completo só no fim. Entre tabelas há um cooldown fixo.
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

    def list_tables(self) -> List[str]:
        data = self.client.call(
            {"action": "cargotables", "limit": self.config.cargo_table_list_limit}
        )
        if not data or not data.get("cargotables"):
            return []
        names = [_table_name(t) for t in data["cargotables"]]
        return [n for n in names if n]

    def get_table_fields(self, table: str) -> List[str]:
        data = self.client.call({"action": "cargofields", "table": table})
        if not data or not data.get("cargofields"):
            return []

        raw = data["cargofields"]
        if isinstance(raw, dict):
            fields = list(raw.keys())
        else:
            fields = [_field_name(f) for f in raw]

        out: List[str] = []
        for f in fields:
            if f and f not in out:
                out.append(f)
        if not out:
            return []
        if PAGE_NAME_FIELD not in out:
            out.insert(0, PAGE_NAME_FIELD)
        return out

    def fetch_rows(self, table: str, fields: List[str]) -> List[Dict]:
        page_size = self.config.cargo_page_size
        fields_param = ",".join(fields)
        rows: List[Dict] = []
        offset = 0

        while True:
            data = self.client.call(
                {
                    "action": "cargoquery",
                    "tables": table,
                    "fields": fields_param,
                    "limit": page_size,
                    "offset": offset,
                    "order_by": PAGE_NAME_FIELD,
                },
                "POST",
            )
            items = (data or {}).get("cargoquery") or []
            if not items:
                break

            page = [item.get("title", item) if isinstance(item, dict) else item for item in items]
            rows.extend(page)
            print(f"   [rows] +{len(page)} (total: {len(rows)})", flush=True)

            if len(page) < page_size:
                break
            offset += page_size
            self.sleep(self.config.cargo_request_delay)

        return rows

    def dump_table(self, table: str) -> Optional[int]:
        """
        Baixa uma tabela e grava cargo_tables/<table>.json.

        Retorna o número de linhas gravadas, ou None se a tabela foi pulada
        (sem campos resolvíveis).
        """
        fields = self.get_table_fields(table)
        if not fields:
            print(f"[skip] tabela [{table}] sem campos", flush=True)
            return None

        print(f"[table] baixando [{table}] ({len(fields)} campos)", flush=True)
        rows = self.fetch_rows(table, fields)

        out_path = write_json(rows, self.config.cargo_dir / f"{table}.json")
        print(f"[table] [{table}] concluída: {len(rows)} linhas -> {out_path}", flush=True)
        return len(rows)

    def run(self) -> Dict[str, Optional[int]]:
        ensure_dir(self.config.data_dir)

        print("[tables] listando tabelas Cargo ...", flush=True)
        tables = self.list_tables()
        print(f"[tables] {len(tables)} tabelas encontradas", flush=True)

        results: Dict[str, Optional[int]] = {}
        for table in tables:
            if table.startswith(INTERNAL_TABLE_PREFIX):
                continue

            if self.config.skip_existing_tables and (self.config.cargo_dir / f"{table}.json").exists():
                print(f"[skip] [{table}] já existe em disco", flush=True)
                continue

            results[table] = self.dump_table(table)

            print(
                f"[cooldown] [{table}] processada, pausa de {self.config.table_cooldown:g}s",
                flush=True,
            )
            self.sleep(self.config.table_cooldown)

        return results


def main() -> int:
    config = CrawlerConfig()
    dumper = CargoDumper(WikiApiClient(config), config)
    try:
        results = dumper.run()
    except RateLimitExhausted as e:
        print(f"[ERROR] dump Cargo abortado: {e}", flush=True)
        return 1

    dumped = sum(1 for n in results.values() if n is not None)
    print(f"[done] tabelas gravadas: {dumped}/{len(results)}", flush=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
