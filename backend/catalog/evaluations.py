"""
evaluations.py — Certification evaluations as tagged variants.

Each EvaluationType has its own pydantic model with a typed field set; the
`Evaluation` union is discriminated on `type`. Stored/exchanged JSON uses the
camelCase keys of the catalog files (documentId, issueDate, ...); snake_case
is accepted as well.

Conformity:
  - checklist kinds   → share of checklist booleans that are true
  - C2C               → 50 × base checklist share + 50 if any category score is set
  - Product Circularity → share of the three narrative fields that are filled
  - Global Green Tag, FSC / PEFC, ECOLABEL → always 100
"""

import math
import re
import logging
from datetime import date
from typing import Annotated, Any, ClassVar, Iterable, Literal, Optional, Union

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator,
)

from catalog.constants import (
    EvaluationType, EvaluationStatus,
    CONFORMITY_HIGH, CONFORMITY_MEDIUM,
    DEFAULT_PROJECT_START, DEFAULT_PROJECT_END,
)

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r'^\s*[+-]?\d+')


def _to_camel(name: str) -> str:
    first, *rest = name.split('_')
    return first + ''.join(part[:1].upper() + part[1:] for part in rest)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ═══════════════════════════════════════════════════════
#  Common evaluation fields
# ═══════════════════════════════════════════════════════

class EvaluationBase(BaseModel):
    model_config = ConfigDict(alias_generator=_to_camel, populate_by_name=True, extra='ignore')

    id: Optional[Union[int, str]] = None
    version: str = '1.0'
    issue_date: Optional[str] = None
    valid_to: Optional[str] = None
    conformity: int = Field(default=0, ge=0, le=100)
    geographic_area: str = 'Global'
    file_name: Optional[str] = None

    @field_validator('issue_date', 'valid_to')
    @classmethod
    def validate_iso_date(cls, v):
        if v in (None, ''):
            return None
        date.fromisoformat(v[:10])
        return v

    def compute_conformity(self) -> int:
        raise NotImplementedError

    def with_conformity(self):
        """Copy of this evaluation with conformity recalculated."""
        return self.model_copy(update={'conformity': self.compute_conformity()})


class ChecklistEvaluation(EvaluationBase):
    """Evaluation whose conformity is the share of satisfied checklist items."""
    CHECKLIST: ClassVar[tuple[str, ...]] = ()

    def compute_conformity(self) -> int:
        if not self.CHECKLIST:
            return 100
        satisfied = sum(1 for f in self.CHECKLIST if getattr(self, f) is True)
        return _round_half_up(satisfied / len(self.CHECKLIST) * 100)


class FixedEvaluation(EvaluationBase):
    """Presence of the certificate is full conformity."""

    def compute_conformity(self) -> int:
        return 100


# ═══════════════════════════════════════════════════════
#  Variants
# ═══════════════════════════════════════════════════════

class EPDEvaluation(ChecklistEvaluation):
    type: Literal['EPD'] = 'EPD'
    document_id: bool = False
    epd_owner: bool = False
    program_operator: bool = False
    reference_pcr: bool = False
    manufacturer_recognized: bool = False
    include_functional_unit: bool = False
    manufacturing_locations: bool = False
    minimum_cradle_to_gate: bool = False
    all_six_impact_categories: bool = False
    lca_verification_iso14044: bool = False
    person_conducting_lca: bool = False
    lca_software: bool = False
    iso21930_compliance: bool = False
    epd_verification_iso14025: bool = False
    external_independent_reviewer: bool = False

    CHECKLIST: ClassVar[tuple[str, ...]] = (
        'document_id', 'epd_owner', 'program_operator', 'reference_pcr',
        'manufacturer_recognized', 'include_functional_unit', 'manufacturing_locations',
        'minimum_cradle_to_gate', 'all_six_impact_categories', 'lca_verification_iso14044',
        'person_conducting_lca', 'lca_software', 'iso21930_compliance',
        'epd_verification_iso14025', 'external_independent_reviewer',
    )


class LCAEvaluation(ChecklistEvaluation):
    type: Literal['LCA'] = 'LCA'
    milestones_for_improvements: bool = False
    narrative_actions: bool = False
    target_impact_areas: bool = False
    company_executive_signature: bool = False
    summary_largest_impacts: bool = False
    same_optimization_pcr: bool = False
    optimization_lca_verification: bool = False
    person_conducting_optimization_lca: bool = False
    optimization_lca_software: bool = False
    comparative_analysis: bool = False
    narrative_reductions: bool = False
    reduction_gwp10: bool = False
    reduction_gwp20: bool = False
    reduction_additional_categories: bool = False

    CHECKLIST: ClassVar[tuple[str, ...]] = (
        'milestones_for_improvements', 'narrative_actions', 'target_impact_areas',
        'company_executive_signature', 'summary_largest_impacts', 'same_optimization_pcr',
        'optimization_lca_verification', 'person_conducting_optimization_lca',
        'optimization_lca_software', 'comparative_analysis', 'narrative_reductions',
        'reduction_gwp10', 'reduction_gwp20', 'reduction_additional_categories',
    )


class ManufacturerInventoryEvaluation(ChecklistEvaluation):
    type: Literal['Manufacturer Inventory'] = 'Manufacturer Inventory'
    document_id: bool = False
    inventory_assessed01_wt1000ppm: bool = False
    inventory_assessed01_wt100ppm: bool = False
    all_ingredients_identified_by_name: bool = False
    all_ingredients_identified_by_casrn: bool = False
    ingredient_chemical_role_and_amount: bool = False
    hazard_score_class_disclosed: bool = False
    no_green_screen_lt1_hazards: bool = False
    greater_than95wt_assessed: bool = False
    remaining5_percent_inventoried: bool = False
    external_independent_reviewer: bool = False

    CHECKLIST: ClassVar[tuple[str, ...]] = (
        'document_id', 'inventory_assessed01_wt1000ppm', 'inventory_assessed01_wt100ppm',
        'all_ingredients_identified_by_name', 'all_ingredients_identified_by_casrn',
        'ingredient_chemical_role_and_amount', 'hazard_score_class_disclosed',
        'no_green_screen_lt1_hazards', 'greater_than95wt_assessed',
        'remaining5_percent_inventoried', 'external_independent_reviewer',
    )


class REACHEvaluation(ChecklistEvaluation):
    type: Literal['REACH Optimization'] = 'REACH Optimization'
    document_id: bool = False
    inventory_assessed001_wt100ppm: bool = False
    no_substances_annex_xiv: bool = Field(default=False, alias='noSubstancesAuthorizationListAnnexXIV')
    no_substances_annex_xvii: bool = Field(default=False, alias='noSubstancesAuthorizationListAnnexXVII')
    no_substances_svhc_candidate_list: bool = False
    identification_author_report: bool = False

    CHECKLIST: ClassVar[tuple[str, ...]] = (
        'document_id', 'inventory_assessed001_wt100ppm',
        'no_substances_annex_xiv', 'no_substances_annex_xvii',
        'no_substances_svhc_candidate_list', 'identification_author_report',
    )


class HPDEvaluation(ChecklistEvaluation):
    type: Literal['Health Product Declaration'] = 'Health Product Declaration'
    document_id: bool = False
    inventory_assessed001_wt1000ppm: bool = False
    inventory_assessed001_wt100ppm: bool = False
    hazards_full_disclosed: bool = False
    no_green_screen_lt1_hazards: bool = False
    greater_than95wt_assessed: bool = False
    remaining5_percent_inventoried: bool = False
    external_independent_reviewer: bool = False

    CHECKLIST: ClassVar[tuple[str, ...]] = (
        'document_id', 'inventory_assessed001_wt1000ppm', 'inventory_assessed001_wt100ppm',
        'hazards_full_disclosed', 'no_green_screen_lt1_hazards',
        'greater_than95wt_assessed', 'remaining5_percent_inventoried',
        'external_independent_reviewer',
    )


class DeclareEvaluation(ChecklistEvaluation):
    type: Literal['Declare'] = 'Declare'
    document_id: bool = False
    inventory_assessed01_wt1000ppm: bool = False
    external_independent_reviewer: bool = False

    CHECKLIST: ClassVar[tuple[str, ...]] = (
        'document_id', 'inventory_assessed01_wt1000ppm', 'external_independent_reviewer',
    )


class C2CEvaluation(EvaluationBase):
    type: Literal['C2C'] = 'C2C'
    document_id: bool = False
    inventory_assessed01_wt1000ppm: bool = False
    clean_air_climate_protection_score: Optional[str] = None
    water_soil_stewardship_score: Optional[str] = None
    social_fairness_score: Optional[str] = None
    product_circularity_score: Optional[str] = None

    BASE_CHECKLIST: ClassVar[tuple[str, ...]] = ('document_id', 'inventory_assessed01_wt1000ppm')
    CATEGORY_SCORES: ClassVar[tuple[str, ...]] = (
        'clean_air_climate_protection_score', 'water_soil_stewardship_score',
        'social_fairness_score', 'product_circularity_score',
    )

    def compute_conformity(self) -> int:
        satisfied = sum(1 for f in self.BASE_CHECKLIST if getattr(self, f) is True)
        score = satisfied / len(self.BASE_CHECKLIST) * 50
        if any(getattr(self, f) for f in self.CATEGORY_SCORES):
            score += 50
        return _round_half_up(score)


class ProductCircularityEvaluation(EvaluationBase):
    type: Literal['Product Circularity'] = 'Product Circularity'
    reused_salvage: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('reusedSalvage', 'reusedOrSalvage', 'reused_salvage'),
        serialization_alias='reusedSalvage',
    )
    biobased_recycled_content: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('biobasedRecycledContent', 'biobasedAndRecycledContent',
                                      'biobased_recycled_content'),
        serialization_alias='biobasedRecycledContent',
    )
    extended_producer_responsability: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('extendedProducerResponsability',
                                      'extendedProducerResponsabilityProgram',
                                      'extended_producer_responsability'),
        serialization_alias='extendedProducerResponsability',
    )

    NARRATIVES: ClassVar[tuple[str, ...]] = (
        'reused_salvage', 'biobased_recycled_content', 'extended_producer_responsability',
    )

    def compute_conformity(self) -> int:
        filled = sum(1 for f in self.NARRATIVES if (getattr(self, f) or '').strip())
        return _round_half_up(filled / len(self.NARRATIVES) * 100)


class GlobalGreenTagEvaluation(FixedEvaluation):
    type: Literal['Global Green Tag Product Health Declaration'] = 'Global Green Tag Product Health Declaration'


class FSCPEFCEvaluation(FixedEvaluation):
    type: Literal['FSC / PEFC'] = 'FSC / PEFC'


class EcolabelEvaluation(FixedEvaluation):
    type: Literal['ECOLABEL'] = 'ECOLABEL'


Evaluation = Annotated[
    Union[
        EPDEvaluation, LCAEvaluation, ManufacturerInventoryEvaluation, REACHEvaluation,
        HPDEvaluation, C2CEvaluation, DeclareEvaluation, ProductCircularityEvaluation,
        GlobalGreenTagEvaluation, FSCPEFCEvaluation, EcolabelEvaluation,
    ],
    Field(discriminator='type'),
]

_EVALUATION_ADAPTER = TypeAdapter(Evaluation)

EVALUATION_MODELS: dict[EvaluationType, type[EvaluationBase]] = {
    EvaluationType.EPD: EPDEvaluation,
    EvaluationType.LCA: LCAEvaluation,
    EvaluationType.MANUFACTURER_INVENTORY: ManufacturerInventoryEvaluation,
    EvaluationType.REACH_OPTIMIZATION: REACHEvaluation,
    EvaluationType.HEALTH_PRODUCT_DECLARATION: HPDEvaluation,
    EvaluationType.C2C: C2CEvaluation,
    EvaluationType.DECLARE: DeclareEvaluation,
    EvaluationType.PRODUCT_CIRCULARITY: ProductCircularityEvaluation,
    EvaluationType.GLOBAL_GREEN_TAG: GlobalGreenTagEvaluation,
    EvaluationType.FSC_PEFC: FSCPEFCEvaluation,
    EvaluationType.ECOLABEL: EcolabelEvaluation,
}


# ═══════════════════════════════════════════════════════
#  Public helpers
# ═══════════════════════════════════════════════════════

def parse_evaluation(data: Any) -> EvaluationBase:
    """Validate a dict (camelCase or snake_case) into its evaluation variant."""
    if isinstance(data, EvaluationBase):
        return data
    return _EVALUATION_ADAPTER.validate_python(data)


def dump_evaluation(evaluation: EvaluationBase) -> dict:
    """camelCase dict used for storage and export."""
    return evaluation.model_dump(by_alias=True, mode='json')


def calculate_conformity(evaluation: Union[EvaluationBase, dict]) -> int:
    return parse_evaluation(evaluation).compute_conformity()


def _evaluation_field(evaluation: Any, field: str, alias: str) -> Any:
    if isinstance(evaluation, dict):
        return evaluation.get(alias, evaluation.get(field))
    return getattr(evaluation, field, None)


def _leading_int(text: str) -> Optional[int]:
    m = _LEADING_INT.match(text or '')
    return int(m.group(0)) if m else None


def generate_version(evaluation_type: Union[EvaluationType, str],
                     existing: Iterable[Any] = ()) -> str:
    """
    Next version for a new evaluation of this type: '1.0' for the first one,
    otherwise the highest existing major.minor with the minor bumped.
    """
    type_value = EvaluationType(evaluation_type).value
    same_type = [e for e in existing
                 if _evaluation_field(e, 'type', 'type') == type_value]
    if not same_type:
        return '1.0'

    highest = (1, 0)
    for e in same_type:
        parts = (_evaluation_field(e, 'version', 'version') or '1.0').split('.')
        major = _leading_int(parts[0]) or 1
        minor = (_leading_int(parts[1]) if len(parts) > 1 else None) or 0
        if (major, minor) > highest:
            highest = (major, minor)

    return f"{highest[0]}.{highest[1] + 1}"


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def evaluation_status(evaluation: Union[EvaluationBase, dict],
                      project_start: Optional[str] = None,
                      project_end: Optional[str] = None) -> EvaluationStatus:
    """Where an evaluation's validity window sits relative to a project's window."""
    start = _parse_date(_evaluation_field(evaluation, 'issue_date', 'issueDate'))
    end = _parse_date(_evaluation_field(evaluation, 'valid_to', 'validTo'))
    proj_start = _parse_date(project_start or DEFAULT_PROJECT_START)
    proj_end = _parse_date(project_end or DEFAULT_PROJECT_END)

    if not (start and end and proj_start and proj_end):
        return EvaluationStatus.UNKNOWN
    if end >= proj_start and start <= proj_end:
        return EvaluationStatus.VALID
    if end < proj_start:
        return EvaluationStatus.EXPIRED
    if start > proj_end:
        return EvaluationStatus.FUTURE
    return EvaluationStatus.UNKNOWN


def conformity_band(conformity: float) -> str:
    if conformity >= CONFORMITY_HIGH:
        return 'high'
    if conformity >= CONFORMITY_MEDIUM:
        return 'medium'
    return 'low'


def display_label(evaluation: Union[EvaluationBase, dict]) -> str:
    """'EPD v2.0' style label."""
    kind = _evaluation_field(evaluation, 'type', 'type')
    version = _evaluation_field(evaluation, 'version', 'version')
    return f"{kind} v{version}" if version else f"{kind}"
