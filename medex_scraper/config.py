"""YAML config loader."""

from dataclasses import dataclass, field
from typing import Dict

import yaml


@dataclass
class DownloadConfig:
    timeout: float = 20.0
    max_retries: int = 3
    retry_delay: float = 1.0
    backoff_factor: float = 1.0
    user_agent: str = "Mozilla/5.0 (compatible; MedExScraper/1.0)"


@dataclass
class SiteConfig:
    enabled: bool = True
    base_url: str = ""
    origin: str = ""
    max_pages: int = 900
    batch_size: int = 5
    batch_delay: float = 0.3
    empty_batch_limit: int = 4
    output_dir: str = ""


@dataclass
class DetailConfig:
    site: str = "medex"
    input_path: str = "data/listing/medex"
    output_path: str = "data/details.jsonl"
    export_path: str = "data/medicine_info_in_details.json"
    request_delay: float = 0.5
    concurrency: int = 1


@dataclass
class AppConfig:
    data_dir: str = "data"
    db_path: str = "data/medex.db"
    log_dir: str = "logs"
    log_level: str = "INFO"
    log_file: str = "scraper.log"
    download: DownloadConfig = field(default_factory=DownloadConfig)
    sites: Dict[str, SiteConfig] = field(default_factory=dict)
    details: DetailConfig = field(default_factory=DetailConfig)


def _pick(cls, raw):
    return cls(**{k: v for k, v in (raw or {}).items() if k in cls.__dataclass_fields__})


def load_config(config_path: str = "config.yaml") -> AppConfig:
    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    download = _pick(DownloadConfig, raw.get("download"))

    sites = {}
    for name, site_raw in (raw.get("sites") or {}).items():
        sites[name] = _pick(SiteConfig, site_raw)

    details = _pick(DetailConfig, raw.get("details"))

    return AppConfig(
        data_dir=raw.get("data_dir", "data"),
        db_path=raw.get("db_path", "data/medex.db"),
        log_dir=raw.get("log_dir", "logs"),
        log_level=raw.get("log_level", "INFO"),
        log_file=raw.get("log_file", "scraper.log"),
        download=download,
        sites=sites,
        details=details,
    )
