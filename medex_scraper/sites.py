"""Site registry: listing profiles and detail-page selectors.

The markup differs per site (and per section of a site), so everything the
extractors look for lives here as data rather than as branches in code.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .extractors.fields import FieldRule
from .extractors.heuristics import COMPANY_SUFFIX


@dataclass(frozen=True)
class ListingProfile:
    name: str
    kind: str  # "positional" or "labeled"
    base_url: str
    origin: str
    link_prefix: str
    entry_selector: str
    # None means the entry element itself carries the href
    link_selector: Optional[str] = None
    row_selector: Optional[str] = None
    column_selector: str = ""
    name_selector: Optional[str] = None
    name_separator: Optional[str] = None
    rules: Tuple[FieldRule, ...] = ()

    def page_url(self, page: int, base_url: Optional[str] = None) -> str:
        base = base_url or self.base_url
        return f"{base}?page={page}" if page > 1 else base


@dataclass(frozen=True)
class DetailSelectors:
    origin: str
    heading: str = "h1.page-heading-1-l.brand"
    subtitle: str = "small.h1-subtitle"
    heading_fallback: str = ".brand"
    generic: str = "div[title='Generic Name']"
    strength: str = "div[title='Strength']"
    company: str = "div[title='Manufactured by']"
    pack_image: str = ".mp-trigger img, .img-defer"
    package: str = ".packages-wrapper .package-container"
    pack_size_info: str = "pack-size-info"
    flag: str = ".sp-flag"
    sibling_brand: str = ".btn-sibling-brands"
    alternate_brands: str = "a.btn-teal.prsinf-btn[href*='/brand-names']"
    section_body_class: str = "ac-body"
    faq_block: str = "#commonly_asked_questions"
    faq_item: str = ".caq"
    faq_question: Tuple[str, ...] = (".caq-q", "h4")
    faq_answer: str = ".caq-a"
    compound_id: str = "compound_summary"
    drug_class_id: str = "drug_classes"
    dosage_id: str = "dosage"
    # record field -> section anchor id on the page
    sections: Dict[str, str] = field(default_factory=lambda: {
        "indications": "indications",
        "mode_of_action": "mode_of_action",
        "interactions": "interaction",
        "contraindications": "contraindications",
        "side_effects": "side_effects",
        "pregnancy_category": "pregnancy_cat",
        "precautions": "precautions",
        "pediatric_use": "pediatric_uses",
        "overdose_effects": "overdose_effects",
        "storage_conditions": "storage_conditions",
        "description": "description",
        "administration": "administration",
    })


MEDEX_ORIGIN = "https://medex.com.bd"
BISSOY_ORIGIN = "https://www.bissoy.com"

MEDEX_LISTING = ListingProfile(
    name="medex",
    kind="labeled",
    base_url=f"{MEDEX_ORIGIN}/brands",
    origin=MEDEX_ORIGIN,
    link_prefix="/brands/",
    entry_selector="a.hoverable-block",
    row_selector=".data-row",
    column_selector=".col-xs-12",
    rules=(
        FieldRule("primary_name", selectors=(".data-row-top",), own_text=True),
        FieldRule("strength", selectors=(".data-row-strength .grey-ligten", ".data-row-strength")),
        FieldRule("medicine_type", selectors=(".md-icon-container img.dosage-icon", ".md-icon-container img"),
                  attrs=("alt", "title")),
        FieldRule("company", selectors=(".data-row-company",), position=-1, pattern=COMPANY_SUFFIX),
        FieldRule("generic_name", position=2, reject_selector=".data-row-company", exclude_assigned=True,
                  scan=True, skip_selectors=(".data-row-top", ".data-row-strength")),
    ),
)

BISSOY_LISTING = ListingProfile(
    name="bissoy",
    kind="positional",
    base_url=f"{BISSOY_ORIGIN}/medicines",
    origin=BISSOY_ORIGIN,
    link_prefix="/medicine/",
    entry_selector="ul.space-y-6 > li",
    link_selector="a[href^='/medicine/']",
    column_selector="div > p",
    name_selector="h3.text-xl.font-bold > a",
    name_separator=" | ",
    rules=(
        FieldRule("strength", position=0),
        FieldRule("generic_name", position=1),
        FieldRule("company", position=2),
        FieldRule("price", position=3),
    ),
)

MEDEX_DETAIL = DetailSelectors(origin=MEDEX_ORIGIN)

ALL_SITES: Dict[str, ListingProfile] = {
    "medex": MEDEX_LISTING,
    "bissoy": BISSOY_LISTING,
}

DETAIL_SELECTORS: Dict[str, DetailSelectors] = {
    "medex": MEDEX_DETAIL,
}
