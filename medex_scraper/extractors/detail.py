"""Detail-record extraction from a single brand page.

Every lookup here may come back empty: missing nodes degrade to ``None`` or
``[]`` for that field and never abort the rest of the page.
"""

from __future__ import annotations

import hashlib
import json
import re
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from ..dom import (
    image_source,
    make_absolute,
    norm_text,
    own_text,
    select_first,
)
from ..models import (
    CommonQuestion,
    CompoundSummary,
    DetailRecord,
    Flag,
    LinkRef,
    PackageEntry,
    Pricing,
)
from ..sites import MEDEX_DETAIL, DetailSelectors
from .sections import (
    extract_answer_lines,
    find_section_body,
    parse_dosage_groups,
    parse_section_groups,
)

RECORD_ID_LENGTH = 24

_MOLECULAR_FORMULA = re.compile(r"Molecular\s*Formula\s*[:\-]?\s*([A-Za-z0-9\-+()/·]+)", re.IGNORECASE)


def _label(node: Optional[Tag]) -> Optional[str]:
    text = norm_text(node)
    if text is None:
        return None
    return text.rstrip(":").strip() or None


def extract_header(soup: BeautifulSoup, sel: DetailSelectors) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(name, dosage_form)``.

    The dosage-form subtitle is nested inside the name heading, so its text is
    subtracted from the heading text to recover the bare name.
    """
    heading = soup.select_one(sel.heading)
    subtitle = heading.select_one(sel.subtitle) if heading is not None else None
    dosage_form = norm_text(subtitle)

    name = norm_text(heading)
    if name:
        if dosage_form:
            name = name.replace(dosage_form, "", 1).strip() or None
    else:
        name = norm_text(soup.select_one(sel.heading_fallback))
    return name, dosage_form


def extract_company(soup: BeautifulSoup, sel: DetailSelectors) -> Optional[str]:
    block = soup.select_one(sel.company)
    if block is None:
        return None
    anchor = block.find("a")
    if anchor is not None:
        return norm_text(anchor)
    return own_text(block)


def extract_pricing(soup: BeautifulSoup, sel: DetailSelectors) -> Pricing:
    entries: List[PackageEntry] = []
    for container in soup.select(sel.package):
        psi = norm_text(container.find(class_=sel.pack_size_info))

        spans = [s for s in container.find_all("span", recursive=False)
                 if sel.pack_size_info not in (s.get("class") or [])]
        if len(spans) >= 2:
            entries.append(PackageEntry(label=_label(spans[0]), price=norm_text(spans[1]), pack_size_info=psi))
        elif len(spans) == 1:
            nested_values = container.select("div span")
            value = nested_values[-1] if nested_values else None
            entries.append(PackageEntry(label=_label(spans[0]), price=norm_text(value), pack_size_info=psi))

        # Label/value pairs wrapped one level deeper
        for block in container.find_all("div", recursive=False):
            inner = block.find_all("span")
            if len(inner) >= 2:
                entries.append(PackageEntry(label=_label(inner[0]), price=norm_text(inner[1])))

    packages = []
    seen = set()
    for entry in entries:
        key = (entry.label or "", entry.price or "")
        if key not in seen:
            seen.add(key)
            packages.append(entry)

    pricing = Pricing(packages=packages)
    for p in packages:
        label = (p.label or "").lower()
        if pricing.unit_price is None and "unit price" in label:
            pricing.unit_price = p.price
        if pricing.strip_price is None and "strip price" in label:
            pricing.strip_price = p.price
        if pricing.pack_size_info is None and p.pack_size_info:
            pricing.pack_size_info = p.pack_size_info
    if packages:
        if pricing.unit_price is None:
            pricing.unit_price = packages[0].price
        if pricing.pack_size_info is None:
            pricing.pack_size_info = packages[0].pack_size_info
    return pricing


def extract_flags(soup: BeautifulSoup, sel: DetailSelectors) -> List[Flag]:
    flags = []
    for node in soup.select(sel.flag):
        parts = node.find_all("div", recursive=False)
        flags.append(Flag(
            label=norm_text(parts[0]) if len(parts) > 0 else None,
            note=norm_text(parts[1]) if len(parts) > 1 else None,
        ))
    return flags


def extract_also_available(soup: BeautifulSoup, sel: DetailSelectors) -> List[LinkRef]:
    return [
        LinkRef(text=norm_text(a), href=make_absolute(a.get("href"), sel.origin))
        for a in soup.select(sel.sibling_brand)
    ]


def extract_common_questions(soup: BeautifulSoup, sel: DetailSelectors) -> List[CommonQuestion]:
    block = soup.select_one(sel.faq_block)
    items = block.select(sel.faq_item) if block is not None else []
    if not items:
        items = soup.select(sel.faq_item)

    questions = []
    for item in items:
        question = norm_text(select_first(item, *sel.faq_question))
        answer_node = item.select_one(sel.faq_answer)
        answer = extract_answer_lines(answer_node)
        if not answer and answer_node is not None:
            fallback = norm_text(answer_node)
            if fallback:
                answer = [fallback]
        if question or answer:
            questions.append(CommonQuestion(question=question, answer=answer))
    return questions


def _cell_value(cell: Tag, origin: str) -> Optional[str]:
    img = cell.find("img")
    if img is not None:
        return image_source(img, origin)
    return norm_text(cell)


def extract_compound_summary(soup: BeautifulSoup, sel: DetailSelectors) -> CompoundSummary:
    compound = CompoundSummary()
    body = find_section_body(soup, sel.compound_id, sel.section_body_class)
    if body is None:
        return compound

    table = body.find("table")
    if table is not None:
        for row in table.find_all("tr"):
            cells = row.find_all("td")
            if len(cells) < 2:
                continue
            key = (norm_text(cells[0]) or "").rstrip(": ").lower()
            if compound.molecular_formula is None and re.search(r"molecular\s*formula", key):
                compound.molecular_formula = norm_text(cells[1])
            elif compound.chemical_structure is None and "structure" in key:
                compound.chemical_structure = _cell_value(cells[1], sel.origin)

    if compound.molecular_formula is None:
        match = _MOLECULAR_FORMULA.search(norm_text(body) or "")
        if match:
            compound.molecular_formula = match.group(1).strip() or None
    if compound.chemical_structure is None:
        compound.chemical_structure = image_source(body.find("img"), sel.origin)
    return compound


def extract_therapeutic_class(soup: BeautifulSoup, sel: DetailSelectors) -> Optional[str]:
    body = find_section_body(soup, sel.drug_class_id, sel.section_body_class)
    if body is not None:
        return norm_text(body)
    marker = soup.find(id=sel.drug_class_id)
    if marker is not None:
        return norm_text(marker.find_next_sibling())
    return None


def derive_record_id(item: Optional[dict], source_url: Optional[str]) -> str:
    """Stable id for a detail record.

    Prefers an id carried by the seed item (``_id.$oid``, ``_id``, ``id``),
    else a truncated SHA-1 of the source URL, else of the item content.
    """
    if item:
        raw_id = item.get("_id")
        if isinstance(raw_id, dict) and raw_id.get("$oid"):
            return str(raw_id["$oid"])
        if raw_id:
            return str(raw_id)
        if item.get("id"):
            return str(item["id"])
    seed = source_url or json.dumps(item or {}, sort_keys=True, ensure_ascii=False)
    return hashlib.sha1(seed.encode("utf-8")).hexdigest()[:RECORD_ID_LENGTH]


def extract_detail(soup: BeautifulSoup, page_url: str, sel: DetailSelectors = MEDEX_DETAIL) -> DetailRecord:
    name, dosage_form = extract_header(soup, sel)

    generic_block = soup.select_one(sel.generic)
    generic = norm_text(generic_block.find("a")) if generic_block is not None else None

    alternate = soup.select_one(sel.alternate_brands)

    record = DetailRecord(
        source_url=page_url,
        final_url=page_url,
        name=name,
        dosage_form=dosage_form,
        generic=generic or norm_text(generic_block),
        strength=norm_text(soup.select_one(sel.strength)),
        company=extract_company(soup, sel),
        pack_image=image_source(soup.select_one(sel.pack_image), sel.origin),
        pricing=extract_pricing(soup, sel),
        flags=extract_flags(soup, sel),
        also_available=extract_also_available(soup, sel),
        alternate_brands_url=make_absolute(alternate.get("href"), sel.origin) if alternate is not None else None,
        compound_summary=extract_compound_summary(soup, sel),
        therapeutic_class=extract_therapeutic_class(soup, sel),
        dosage=parse_dosage_groups(find_section_body(soup, sel.dosage_id, sel.section_body_class)),
        common_questions=extract_common_questions(soup, sel),
        fetched_at=datetime.now(timezone.utc).isoformat(),
    )

    for field_name, section_id in sel.sections.items():
        body = find_section_body(soup, section_id, sel.section_body_class)
        setattr(record, field_name, parse_section_groups(body))

    return record
