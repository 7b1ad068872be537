"""Resumable on-disk stores for listing batches and detail records.

Listing batches are one JSON array per page range
(``page_{start}_to_{end}.json``), written atomically. Detail records go to an
append-only JSON-lines log; the set of recorded ``source_url`` values is
built from the log once at startup and kept in memory, so the
already-recorded check never rescans the file.
"""

import json
import logging
import os
import re
import tempfile
from typing import Iterator, List, Optional, Set, Tuple
from urllib.parse import urljoin

logger = logging.getLogger("medex_scraper")

_ARTIFACT = re.compile(r"^page_(\d+)_to_(\d+)\.json$")

SEED_URL_KEYS = ("source_url", "source", "href", "link")


def normalize_url(url: Optional[str], origin: str) -> Optional[str]:
    if not url or not str(url).strip():
        return None
    url = str(url).strip()
    if url.lower().startswith(("http://", "https://")):
        return url
    return urljoin(origin.rstrip("/") + "/", url)


def seed_url(item: dict) -> Optional[str]:
    for key in SEED_URL_KEYS:
        value = item.get(key)
        if value:
            return value
    return None


def write_json_atomic(path: str, data) -> None:
    """Write *data* as JSON via a temp file + rename so readers never see a torn file."""
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


class BatchStore:
    def __init__(self, output_dir: str):
        self.output_dir = output_dir
        os.makedirs(output_dir, exist_ok=True)

    def path_for(self, start: int, end: int) -> str:
        return os.path.join(self.output_dir, f"page_{start}_to_{end}.json")

    def has_batch_output(self, start: int, end: int) -> bool:
        """True iff the artifact for exactly this range holds at least one record."""
        path = self.path_for(start, end)
        try:
            if os.path.getsize(path) == 0:
                return False
        except OSError:
            return False
        return bool(self.read_batch_output(start, end))

    def read_batch_output(self, start: int, end: int) -> List[dict]:
        path = self.path_for(start, end)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            if os.path.exists(path):
                logger.warning(f"Unreadable batch artifact {path}: {e}")
            return []
        return data if isinstance(data, list) else []

    def write_batch_output(self, start: int, end: int, records: List[dict]) -> str:
        path = self.path_for(start, end)
        write_json_atomic(path, records)
        return path

    def iter_artifacts(self) -> Iterator[Tuple[int, int, str]]:
        found = []
        for name in os.listdir(self.output_dir):
            m = _ARTIFACT.match(name)
            if m:
                found.append((int(m.group(1)), int(m.group(2)), os.path.join(self.output_dir, name)))
        yield from sorted(found)


class DetailStore:
    def __init__(self, log_path: str, origin: str = ""):
        self.log_path = log_path
        self.origin = origin
        self._index: Set[str] = set()
        self._count = 0
        os.makedirs(os.path.dirname(os.path.abspath(log_path)), exist_ok=True)
        self._load()

    def __len__(self) -> int:
        return self._count

    def _load(self):
        if not os.path.exists(self.log_path):
            return
        good_lines = []
        dropped = 0
        with open(self.log_path, encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                try:
                    record = json.loads(line)
                except ValueError:
                    dropped += 1
                    continue
                good_lines.append(line if line.endswith("\n") else line + "\n")
                key = normalize_url(record.get("source_url"), self.origin)
                if key:
                    self._index.add(key)
        self._count = len(good_lines)

        if dropped:
            # A crash mid-append leaves a torn last line; rewrite without it
            logger.warning(f"Dropping {dropped} unreadable line(s) from {self.log_path}")
            directory = os.path.dirname(os.path.abspath(self.log_path))
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".jsonl")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.writelines(good_lines)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.log_path)

    def is_already_recorded(self, source_url: Optional[str]) -> bool:
        key = normalize_url(source_url, self.origin)
        return key is not None and key in self._index

    def append_record(self, record: dict) -> bool:
        """Append one record. Returns False (and writes nothing) for a duplicate."""
        key = normalize_url(record.get("source_url"), self.origin)
        if key is None:
            raise ValueError("record has no source_url")
        if key in self._index:
            return False
        record = dict(record, source_url=key)
        line = json.dumps(record, ensure_ascii=False) + "\n"
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(line)
            f.flush()
            os.fsync(f.fileno())
        self._index.add(key)
        self._count += 1
        return True

    def iter_records(self) -> Iterator[dict]:
        if not os.path.exists(self.log_path):
            return
        with open(self.log_path, encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    yield json.loads(line)

    def export(self, path: str) -> int:
        """Compact the log into a single JSON array file. Returns the record count."""
        records = list(self.iter_records())
        write_json_atomic(path, records)
        return len(records)


def load_seed_items(path: str) -> List[dict]:
    """Load the seed list for detail fetching.

    *path* is either a JSON array file or a directory of listing batch
    artifacts, which are concatenated in page order. Raises
    ``FileNotFoundError`` when nothing exists at *path*.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Seed input not found: {path}")

    if os.path.isdir(path):
        items = []
        for _, _, artifact in BatchStore(path).iter_artifacts():
            with open(artifact, encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, list):
                items.extend(d for d in data if isinstance(d, dict))
        return items

    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Seed input is not a JSON array: {path}")
    return [d for d in data if isinstance(d, dict)]
