"""Startup loading of seed and configuration files."""

import copy
import json
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from pathlib import Path
from typing import Dict

from config import DEFAULT_SEEDS, SEED_FILES, SEED_TIMEOUT_S


def _read_seed(path: Path, fallback: dict) -> dict:
    """Parse one seed file and lay it over its defaults."""
    with open(path, 'r', encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"expected an object, got {type(data).__name__}")
    merged = copy.deepcopy(fallback)
    merged.update(data)
    return merged


def load_seeds(seed_dir: Path, timeout: float = SEED_TIMEOUT_S) -> Dict[str, dict]:
    """
    Load every seed source concurrently.

    Each source is independent: a missing, unreadable, malformed or slow file
    falls back to its built-in default without affecting the others. Returns
    only after every source has settled.

    Args:
        seed_dir: Directory holding settings.json, config.json, etc.
        timeout: Seconds to wait for each source.

    Returns:
        Mapping of source name ("settings", "config", ...) to its data.
    """
    seed_dir = Path(seed_dir)
    results: Dict[str, dict] = {}

    pool = ThreadPoolExecutor(max_workers=len(SEED_FILES))
    futures = {
        name: pool.submit(_read_seed, seed_dir / filename, DEFAULT_SEEDS[name])
        for name, filename in SEED_FILES.items()
    }
    try:
        for name, future in futures.items():
            try:
                results[name] = future.result(timeout=timeout)
            except FileNotFoundError:
                results[name] = copy.deepcopy(DEFAULT_SEEDS[name])
            except FutureTimeout:
                print(f"Warning: Timed out reading {SEED_FILES[name]}, using defaults")
                results[name] = copy.deepcopy(DEFAULT_SEEDS[name])
            except (OSError, ValueError) as e:
                print(f"Warning: Falling back to defaults for {SEED_FILES[name]}: {e}")
                results[name] = copy.deepcopy(DEFAULT_SEEDS[name])
    finally:
        # Do not wait on a stuck read
        pool.shutdown(wait=False, cancel_futures=True)

    return results
