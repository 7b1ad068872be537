"""Tests for listing-page extraction and the declarative field rules."""

from __future__ import annotations

from medex_scraper.dom import parse_html
from medex_scraper.extractors.listing import extract_summaries
from medex_scraper.sites import BISSOY_LISTING, MEDEX_LISTING, ListingProfile

from conftest import EMPTY_PAGE, medex_entry, medex_listing_page

MEDEX_PAGE_URL = "https://medex.com.bd/brands?page=2"
BISSOY_PAGE_URL = "https://www.bissoy.com/medicines?page=2"


def _bissoy_page(*items: str) -> str:
    return f"<html><body><ul class='space-y-6'>{''.join(items)}</ul></body></html>"


def _bissoy_item(slug: str, name: str, *columns: str) -> str:
    paragraphs = "".join(f"<p>{c}</p>" for c in columns)
    return (
        f"<li><div><h3 class='text-xl font-bold'><a href='/medicine/{slug}'>{name}</a></h3>"
        f"{paragraphs}</div></li>"
    )


class TestLabeledListing:
    def test_reads_semantic_columns(self) -> None:
        soup = parse_html(medex_listing_page(2, count=1))
        records = extract_summaries(soup, MEDEX_PAGE_URL, MEDEX_LISTING, page=2)

        assert len(records) == 1
        r = records[0]
        assert r.primary_name == "Brand 2-0"
        assert r.source_url == "https://medex.com.bd/brands/20/brand-2-0"
        assert r.origin_page == 2
        assert r.strength == "500 mg"
        assert r.generic_name == "Paracetamol"
        assert r.company == "Beximco Pharmaceuticals Ltd."
        assert r.medicine_type == "Tablet"

    def test_document_order_is_preserved(self) -> None:
        soup = parse_html(medex_listing_page(1, count=4))
        names = [r.primary_name for r in extract_summaries(soup, MEDEX_PAGE_URL, MEDEX_LISTING)]
        assert names == ["Brand 1-0", "Brand 1-1", "Brand 1-2", "Brand 1-3"]

    def test_company_falls_back_to_last_column_with_suffix(self) -> None:
        html = """
        <a href="/brands/1/ace" class="hoverable-block"><div class="data-row">
          <div class="col-xs-12 data-row-top">Ace</div>
          <div class="col-xs-12 data-row-strength">500 mg</div>
          <div class="col-xs-12">Paracetamol</div>
          <div class="col-xs-12">Square Pharmaceuticals PLC</div>
        </div></a>
        """
        [r] = extract_summaries(parse_html(html), MEDEX_PAGE_URL, MEDEX_LISTING)
        assert r.company == "Square Pharmaceuticals PLC"
        assert r.generic_name == "Paracetamol"
        assert r.source_url == "https://medex.com.bd/brands/1/ace"

    def test_company_stays_null_without_suffix(self) -> None:
        html = """
        <a href="/brands/1/ace" class="hoverable-block"><div class="data-row">
          <div class="col-xs-12 data-row-top">Ace</div>
          <div class="col-xs-12 data-row-strength">500 mg</div>
          <div class="col-xs-12">Paracetamol</div>
        </div></a>
        """
        [r] = extract_summaries(parse_html(html), MEDEX_PAGE_URL, MEDEX_LISTING)
        assert r.company is None
        assert r.generic_name == "Paracetamol"

    def test_generic_never_duplicates_company(self) -> None:
        html = """
        <a href="/brands/1/ace" class="hoverable-block"><div class="data-row">
          <div class="col-xs-12 data-row-top">Ace</div>
          <div class="col-xs-12 data-row-strength">500 mg</div>
          <div class="col-xs-12">Square Pharma Ltd</div>
        </div></a>
        """
        [r] = extract_summaries(parse_html(html), MEDEX_PAGE_URL, MEDEX_LISTING)
        assert r.company == "Square Pharma Ltd"
        assert r.generic_name is None

    def test_links_outside_prefix_are_dropped(self) -> None:
        html = (
            medex_entry("1/napa", "Napa")
            + '<a href="/generics/1/paracetamol" class="hoverable-block"><div class="data-row">'
              '<div class="col-xs-12 data-row-top">Paracetamol</div></div></a>'
        )
        records = extract_summaries(parse_html(html), MEDEX_PAGE_URL, MEDEX_LISTING)
        assert [r.primary_name for r in records] == ["Napa"]

    def test_entry_without_row_uses_free_text_split(self) -> None:
        html = ('<a href="/brands/9/napa" class="hoverable-block">'
                "Napa 500 mg Paracetamol Beximco Pharmaceuticals Ltd.</a>")
        [r] = extract_summaries(parse_html(html), MEDEX_PAGE_URL, MEDEX_LISTING)
        assert r.primary_name == "Napa"
        assert r.strength == "500 mg"
        assert r.generic_name == "Paracetamol"
        assert r.company == "Beximco Pharmaceuticals Ltd."

    def test_empty_page_yields_no_records(self) -> None:
        assert extract_summaries(parse_html(EMPTY_PAGE), MEDEX_PAGE_URL, MEDEX_LISTING) == []


class TestPositionalListing:
    def test_full_entry(self) -> None:
        html = _bissoy_page(_bissoy_item("napa", "Napa | নাপা", "500 mg", "Paracetamol", "Beximco", "৳ 1.20"))
        [r] = extract_summaries(parse_html(html), BISSOY_PAGE_URL, BISSOY_LISTING, page=2)

        assert r.primary_name == "Napa"
        assert r.secondary_name == "নাপা"
        assert r.source_url == "https://www.bissoy.com/medicine/napa"
        assert r.strength == "500 mg"
        assert r.generic_name == "Paracetamol"
        assert r.company == "Beximco"
        assert r.price == "৳ 1.20"
        assert r.origin_page == 2

    def test_missing_columns_are_null_not_shifted(self) -> None:
        html = _bissoy_page(_bissoy_item("ace", "Ace", "500 mg", "Paracetamol"))
        [r] = extract_summaries(parse_html(html), BISSOY_PAGE_URL, BISSOY_LISTING)

        assert r.secondary_name is None
        assert r.strength == "500 mg"
        assert r.generic_name == "Paracetamol"
        assert r.company is None
        assert r.price is None

    def test_entry_without_name_is_skipped(self) -> None:
        html = _bissoy_page(
            "<li><div><a href='/medicine/x'></a><p>500 mg</p></div></li>",
            _bissoy_item("ace", "Ace", "500 mg"),
        )
        records = extract_summaries(parse_html(html), BISSOY_PAGE_URL, BISSOY_LISTING)
        assert [r.primary_name for r in records] == ["Ace"]


class TestPageUrl:
    def test_first_page_has_no_query(self) -> None:
        assert MEDEX_LISTING.page_url(1) == "https://medex.com.bd/brands"

    def test_later_pages_carry_page_param(self) -> None:
        assert MEDEX_LISTING.page_url(7) == "https://medex.com.bd/brands?page=7"

    def test_base_url_override(self) -> None:
        profile: ListingProfile = BISSOY_LISTING
        assert profile.page_url(2, "https://mirror.example/meds") == "https://mirror.example/meds?page=2"
