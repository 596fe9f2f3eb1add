# src/wiki_collector/run_pipeline.py
import subprocess
import sys
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .settings import CrawlerConfig


@dataclass
class Stage:
    name: str
    module: str


STAGES: List[Stage] = [
    Stage("Estágio 1: dados estruturados (Cargo)", "wiki_collector.dump_cargo"),
    Stage("Estágio 2: mapa de páginas (allpages)", "wiki_collector.build_page_map"),
    Stage("Estágio 3: wikitext bruto em lotes", "wiki_collector.dump_wikitext"),
]


def run_stage(stage: Stage, runner: Callable = subprocess.run) -> int:
    """
    Roda um estágio isolado em subprocesso:

        python -m <stage.module>

    stdio é herdado, então o progresso do filho aparece direto no terminal.
    Devolve o exit code (1 se o processo nem chegou a iniciar).
    """
    print("\n" + "=" * 41, flush=True)
    print(f">>> iniciando: {stage.name}", flush=True)
    print(f">>> módulo: {stage.module}", flush=True)
    print("=" * 41 + "\n", flush=True)

    cmd = [sys.executable, "-m", stage.module]
    try:
        proc = runner(cmd, check=False)
    except OSError as e:
        print(f"[ERROR] não foi possível iniciar {stage.module}: {e!r}", flush=True)
        return 1
    return proc.returncode


def run_pipeline(
    stages: Sequence[Stage] = STAGES,
    *,
    config: Optional[CrawlerConfig] = None,
    runner: Callable = subprocess.run,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    config = config or CrawlerConfig()
    started = time.monotonic()
    print("[pipeline] coleta completa da wiki iniciada", flush=True)

    for i, stage in enumerate(stages):
        code = run_stage(stage, runner=runner)
        if code != 0:
            print(f"\n[ERROR] {stage.name} falhou (exit code {code})", flush=True)
            print("[pipeline] interrompido, estágios restantes não executados", flush=True)
            return 1
        print(f"\n[ok] {stage.name} concluído (exit code 0)", flush=True)

        if i < len(stages) - 1:
            print(f"[pipeline] aguardando {config.stage_pause:g}s antes do próximo estágio ...", flush=True)
            sleep(config.stage_pause)

    minutes = (time.monotonic() - started) / 60
    print(f"\n[done] todos os estágios concluídos em {minutes:.2f} min", flush=True)
    print(f"[done] dados em {config.data_dir}", flush=True)
    return 0


def main() -> int:
    return run_pipeline()


if __name__ == "__main__":
    raise SystemExit(main())
