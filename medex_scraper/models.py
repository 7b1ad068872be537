"""Data models for the scraper pipeline.

Every optional field defaults to ``None`` or an empty list so that the JSON
written to disk always has the same keys.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PageFetchResult:
    identity: Any
    url: str
    html: Optional[str] = None
    final_url: Optional[str] = None
    reason: Optional[str] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.html is not None


@dataclass
class SummaryRecord:
    primary_name: str
    source_url: str
    origin_page: Optional[int] = None
    secondary_name: Optional[str] = None
    strength: Optional[str] = None
    generic_name: Optional[str] = None
    company: Optional[str] = None
    price: Optional[str] = None
    medicine_type: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SectionGroup:
    title: Optional[str] = None
    information: Optional[str] = None
    items: List[str] = field(default_factory=list)


@dataclass
class DosageGroup:
    medication_type: Optional[str] = None
    information: Optional[str] = None
    instructions: List[str] = field(default_factory=list)


@dataclass
class CommonQuestion:
    question: Optional[str] = None
    answer: List[str] = field(default_factory=list)


@dataclass
class PackageEntry:
    label: Optional[str] = None
    price: Optional[str] = None
    pack_size_info: Optional[str] = None


@dataclass
class Pricing:
    unit_price: Optional[str] = None
    strip_price: Optional[str] = None
    pack_size_info: Optional[str] = None
    packages: List[PackageEntry] = field(default_factory=list)


@dataclass
class Flag:
    label: Optional[str] = None
    note: Optional[str] = None


@dataclass
class LinkRef:
    text: Optional[str] = None
    href: Optional[str] = None


@dataclass
class CompoundSummary:
    molecular_formula: Optional[str] = None
    chemical_structure: Optional[str] = None


@dataclass
class DetailRecord:
    source_url: str
    record_id: Optional[str] = None
    final_url: Optional[str] = None
    name: Optional[str] = None
    dosage_form: Optional[str] = None
    generic: Optional[str] = None
    strength: Optional[str] = None
    company: Optional[str] = None
    pack_image: Optional[str] = None
    pricing: Pricing = field(default_factory=Pricing)
    flags: List[Flag] = field(default_factory=list)
    also_available: List[LinkRef] = field(default_factory=list)
    alternate_brands_url: Optional[str] = None
    indications: List[SectionGroup] = field(default_factory=list)
    mode_of_action: List[SectionGroup] = field(default_factory=list)
    interactions: List[SectionGroup] = field(default_factory=list)
    contraindications: List[SectionGroup] = field(default_factory=list)
    side_effects: List[SectionGroup] = field(default_factory=list)
    pregnancy_category: List[SectionGroup] = field(default_factory=list)
    precautions: List[SectionGroup] = field(default_factory=list)
    pediatric_use: List[SectionGroup] = field(default_factory=list)
    overdose_effects: List[SectionGroup] = field(default_factory=list)
    storage_conditions: List[SectionGroup] = field(default_factory=list)
    description: List[SectionGroup] = field(default_factory=list)
    administration: List[SectionGroup] = field(default_factory=list)
    compound_summary: CompoundSummary = field(default_factory=CompoundSummary)
    therapeutic_class: Optional[str] = None
    dosage: List[DosageGroup] = field(default_factory=list)
    common_questions: List[CommonQuestion] = field(default_factory=list)
    fetched_at: Optional[str] = None
    # Back-reference to the seed item, for traceability only
    original_record: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FailedUnit:
    identity: Any
    reason: str


@dataclass
class BatchOutcome:
    range_start: int
    range_end: int
    items_saved: int = 0
    failures: List[FailedUnit] = field(default_factory=list)
    skipped: bool = False
    written: bool = False


@dataclass
class RunReport:
    items_saved: int = 0
    batches_written: int = 0
    batches_skipped: int = 0
    items_skipped: int = 0
    failed: List[Any] = field(default_factory=list)
    unverified: List[int] = field(default_factory=list)
