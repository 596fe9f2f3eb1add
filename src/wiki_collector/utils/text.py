import re
from itertools import islice
from typing import Iterable, Iterator, List

ILLEGAL_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')

def sanitize_filename(name: str, placeholder: str = "_") -> str:
    return ILLEGAL_FILENAME_CHARS.sub(placeholder, name)

def page_filename(title: str, ext: str = ".txt") -> str:
    return sanitize_filename(title) + ext

def chunked(iterable: Iterable, n: int) -> Iterator[List]:
    it = iter(iterable)
    while True:
        batch = list(islice(it, n))
        if not batch:
            break
        yield batch
