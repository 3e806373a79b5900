"""
models.py — Pydantic models for the project import & matching core.
A MatchResult references the catalog material it matched (same object, not a copy);
matched_material is None when no candidate reached the acceptance threshold.
"""

from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator


class CatalogMaterial(BaseModel):
    """A catalog entry as seen by the matcher. Extra catalog fields are ignored."""
    model_config = ConfigDict(extra='ignore')

    id: Union[int, str]
    name: str = ''
    manufacturer: str = ''


class ImportRow(BaseModel):
    """One validated spreadsheet row of a project's material list."""
    row_number: int
    external_id: str
    name: str
    manufacturer: str
    quantity_m2: Optional[float] = None
    quantity_m3: Optional[float] = None
    units: Optional[float] = None

    @property
    def has_quantity(self) -> bool:
        return any(q is not None for q in (self.quantity_m2, self.quantity_m3, self.units))


class MatchCandidate(BaseModel):
    """A catalog material with its score against an imported row."""
    material: CatalogMaterial
    score: float = Field(ge=0.0, le=1.0)


class MatchResult(BaseModel):
    row: ImportRow
    matched_material: Optional[CatalogMaterial] = None
    score: float = Field(ge=0.0, le=1.0, default=0.0)

    @property
    def matched(self) -> bool:
        return self.matched_material is not None


class ImportSummary(BaseModel):
    """
    Counts for one import run.
    total: non-blank rows seen; processed: rows that passed validation;
    matched: processed rows linked to a catalog material.
    """
    total: int = Field(ge=0, default=0)
    processed: int = Field(ge=0, default=0)
    matched: int = Field(ge=0, default=0)
    errors: list[str] = []
    failed: bool = False

    @model_validator(mode='after')
    def check_counts(self):
        if not (self.matched <= self.processed <= self.total):
            raise ValueError(
                f"inconsistent counts: matched={self.matched}, "
                f"processed={self.processed}, total={self.total}"
            )
        return self

    @property
    def unmatched(self) -> int:
        return self.processed - self.matched

    @property
    def match_rate(self) -> float:
        """Matched share of processed rows, as a percentage with one decimal."""
        if self.processed == 0:
            return 0.0
        return round(self.matched / self.processed * 100, 1)
