"""Shared fixtures: HTML builders for both sites and zero-delay configs."""

from __future__ import annotations

import pytest

from medex_scraper.config import AppConfig, DetailConfig, DownloadConfig, SiteConfig
from medex_scraper.db import Database

MEDEX_BASE = "https://medex.com.bd/brands"


def medex_entry(slug: str, name: str, strength: str = "500 mg", generic: str = "Paracetamol",
                company: str = "Beximco Pharmaceuticals Ltd.", dosage: str = "Tablet") -> str:
    return f"""
    <a href="https://medex.com.bd/brands/{slug}" class="hoverable-block">
      <div class="row data-row">
        <div class="col-xs-12 data-row-top">
          <span class="md-icon-container"><img class="dosage-icon" alt="{dosage}" src="/img/t.png"></span>
          {name}
        </div>
        <div class="col-xs-12 data-row-strength"><span class="grey-ligten">{strength}</span></div>
        <div class="col-xs-12">{generic}</div>
        <div class="col-xs-12 data-row-company">{company}</div>
      </div>
    </a>
    """


def medex_listing_page(page: int, count: int = 4) -> str:
    entries = "".join(
        medex_entry(f"{page}{i}/brand-{page}-{i}", f"Brand {page}-{i}") for i in range(count)
    )
    return f"<html><body><div class='data-row-list'>{entries}</div></body></html>"


EMPTY_PAGE = "<html><body><p>No brands found.</p></body></html>"


DETAIL_HTML = """
<html><body>
<div class="container">
  <h1 class="page-heading-1-l brand">Napa <small class="h1-subtitle">Tablet</small></h1>
  <div title="Generic Name"><a href="/generics/1/paracetamol">Paracetamol</a></div>
  <div title="Strength">500 mg</div>
  <div title="Manufactured by"><a href="/companies/1/beximco">Beximco Pharmaceuticals Ltd.</a></div>
  <div class="mp-trigger"><img src="/img/napa-pack.jpg"></div>
  <div class="packages-wrapper">
    <div class="package-container">
      <span>Unit Price:</span><span>৳ 1.20</span><span class="pack-size-info">(500's pack: ৳ 600.00)</span>
    </div>
    <div class="package-container">
      <span>Unit Price:</span><span>৳ 1.20</span>
    </div>
  </div>
  <div class="sp-flag"><div>Controlled drug</div><div>Prescription required</div></div>
  <a class="btn-sibling-brands" href="/brands/5/napa-extra">Napa Extra</a>
  <a class="btn btn-teal prsinf-btn" href="/generics/1/paracetamol/brand-names">View all brands</a>

  <div id="indications"><h3>Indications</h3></div>
  <div class="ac-body">Fever and mild to moderate pain.</div>

  <div id="side_effects"><h3>Side Effects</h3></div>
  <div class="ac-body"><strong>Common:</strong> Nausea.<ul><li>Rash</li></ul><strong>Rare:</strong> Liver damage.</div>

  <div id="dosage"><h3>Dosage</h3></div>
  <div class="ac-body"><ul>
    <li><strong>Tablet</strong>: Adults<ul><li>1-2 tablets every 4-6 hours</li><li>Max 8 tablets daily</li></ul></li>
    <li><strong>Syrup</strong><ul><li>Children: 10-15 mg/kg</li></ul></li>
  </ul></div>

  <div id="compound_summary"><h3>Compound Summary</h3></div>
  <div class="ac-body"><p>Molecular Formula : C8H9NO2</p><img data-src="/img/structure.png"></div>

  <div id="drug_classes"><h3>Therapeutic Class</h3></div>
  <div class="ac-body">Non opioid analgesics</div>

  <div id="commonly_asked_questions">
    <div class="caq">
      <div class="caq-q">What is Napa?</div>
      <div class="caq-a">It is a painkiller.<ul><li>Take with water</li></ul></div>
    </div>
  </div>
</div>
</body></html>
"""


@pytest.fixture()
def download_config() -> DownloadConfig:
    return DownloadConfig(timeout=5.0, max_retries=2, retry_delay=0.0, backoff_factor=1.0)


@pytest.fixture()
def app_config(tmp_path, download_config) -> AppConfig:
    return AppConfig(
        data_dir=str(tmp_path / "data"),
        db_path=str(tmp_path / "data" / "medex.db"),
        log_dir=str(tmp_path / "logs"),
        download=download_config,
        sites={
            "medex": SiteConfig(
                base_url=MEDEX_BASE,
                max_pages=5,
                batch_size=5,
                batch_delay=0.0,
                empty_batch_limit=4,
                output_dir=str(tmp_path / "data" / "listing" / "medex"),
            ),
        },
        details=DetailConfig(
            input_path=str(tmp_path / "data" / "listing" / "medex"),
            output_path=str(tmp_path / "data" / "details.jsonl"),
            export_path=str(tmp_path / "data" / "export.json"),
            request_delay=0.0,
            concurrency=2,
        ),
    )


@pytest.fixture()
def db(tmp_path):
    database = Database(str(tmp_path / "ledger.db"))
    yield database
    database.close()
