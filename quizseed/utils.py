import re, json, datetime, os, math
from typing import Any, Dict, Iterable, List

def now_utc_iso()->str:
    return datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

def chunk_sizes(total:int, size:int)->List[int]:
    """
    Split `total` into ceil(total/size) pieces of `size`; the last may be smaller.
    chunk_sizes(45, 20) -> [20, 20, 5]
    """
    if size < 1:
        raise ValueError(f"size must be positive, got {size}")
    n = math.ceil(total / size) if total > 0 else 0
    return [min(size, total - i * size) for i in range(n)]

def strip_code_fences(text:str)->str:
    """
    Remove ```json / ``` fence markers a model wraps around its JSON.
    Unfenced text is returned stripped and otherwise unchanged.
    """
    text = re.sub(r"```json\n?", "", text)
    text = re.sub(r"```\n?", "", text)
    return text.strip()

def write_jsonl(path:str, rows:Iterable[Dict[str, Any]])->int:
    """Write one JSON object per line, creating parent dirs; returns the row count."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    n = 0
    with open(path, "w", encoding="utf-8") as f:
        for r in rows:
            f.write(json.dumps(r, ensure_ascii=False) + "\n")
            n += 1
    return n
