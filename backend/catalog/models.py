"""
models.py — Catalog records (materials, projects, config) as pydantic models.
Inbound payloads are validated here before they reach the store.
"""

from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from catalog.evaluations import Evaluation


def _timestamp_field(snake: str, camel: str):
    return Field(default=None, validation_alias=AliasChoices(snake, camel))


class Material(BaseModel):
    """A catalog material with its certification evaluations."""
    model_config = ConfigDict(extra='ignore')

    id: Optional[int] = None
    name: str
    manufacturer: str = ''
    category: str = ''
    subcategory: str = ''
    description: str = ''
    evaluations: list[Evaluation] = Field(default_factory=list)
    created_at: Optional[str] = _timestamp_field('created_at', 'createdAt')
    updated_at: Optional[str] = _timestamp_field('updated_at', 'updatedAt')

    @field_validator('name')
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('name is required')
        return v

    @field_validator('manufacturer', 'category', 'subcategory', 'description', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return '' if v is None else v


class ProjectMaterial(BaseModel):
    """One line of a project's material list, optionally linked to the catalog."""
    model_config = ConfigDict(extra='ignore')

    id: str
    name: str
    manufacturer: str
    quantity_m2: Optional[float] = None
    quantity_m3: Optional[float] = None
    units: Optional[float] = None
    matched_material_id: Optional[Union[int, str]] = None
    match_score: Optional[float] = None


class Project(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: Optional[int] = None
    name: str
    description: str = ''
    start_date: Optional[str] = Field(default=None, validation_alias=AliasChoices('start_date', 'startDate'))
    end_date: Optional[str] = Field(default=None, validation_alias=AliasChoices('end_date', 'endDate'))
    materials: list[ProjectMaterial] = Field(default_factory=list)
    created_at: Optional[str] = _timestamp_field('created_at', 'createdAt')
    updated_at: Optional[str] = _timestamp_field('updated_at', 'updatedAt')

    @field_validator('name')
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('name is required')
        return v


class CatalogConfig(BaseModel):
    """Pick lists offered by the catalog forms."""
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    manufacturers: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    subcategories: dict[str, list[str]] = Field(default_factory=dict)
    evaluation_types: list[str] = Field(default_factory=list, alias='evaluationTypes')
