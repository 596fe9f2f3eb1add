import json
from pathlib import Path
from typing import Any, Union

PathLike = Union[str, Path]


def ensure_dir(path: PathLike) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def write_json(obj: Any, out_path: PathLike) -> Path:
    """Grava `obj` como JSON (indent=2, UTF-8), criando os diretórios pais."""
    out_path = Path(out_path)
    ensure_dir(out_path.parent)
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)
    return out_path


def read_json(path: PathLike) -> Any:
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def write_text(text: str, out_path: PathLike) -> Path:
    out_path = Path(out_path)
    ensure_dir(out_path.parent)
    out_path.write_text(text, encoding="utf-8")
    return out_path
