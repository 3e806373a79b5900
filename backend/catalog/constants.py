"""
═══════════════════════════════════════════════════════════════════════════════
MATERIAL CATALOG: CONSTANTS AND CONFIGURATION
Certification kinds, evaluation status colours and default catalog config
═══════════════════════════════════════════════════════════════════════════════
"""

from enum import Enum
from dataclasses import dataclass
from typing import Dict


class EvaluationType(str, Enum):
    """Closed set of certification / declaration kinds"""
    EPD = 'EPD'
    LCA = 'LCA'
    MANUFACTURER_INVENTORY = 'Manufacturer Inventory'
    REACH_OPTIMIZATION = 'REACH Optimization'
    HEALTH_PRODUCT_DECLARATION = 'Health Product Declaration'
    C2C = 'C2C'
    DECLARE = 'Declare'
    PRODUCT_CIRCULARITY = 'Product Circularity'
    GLOBAL_GREEN_TAG = 'Global Green Tag Product Health Declaration'
    FSC_PEFC = 'FSC / PEFC'
    ECOLABEL = 'ECOLABEL'


class EvaluationStatus(Enum):
    """Validity of an evaluation relative to a project window"""
    VALID = 'green'
    EXPIRED = 'red'
    FUTURE = 'blue'
    UNKNOWN = 'purple'


@dataclass
class StatusInfo:
    color_hex: str
    label_en: str
    label_pt: str


STATUS_MAP: Dict[EvaluationStatus, StatusInfo] = {
    EvaluationStatus.VALID: StatusInfo(
        color_hex='#16A34A',
        label_en='Valid during project',
        label_pt='Válido durante o projeto',
    ),
    EvaluationStatus.EXPIRED: StatusInfo(
        color_hex='#DC2626',
        label_en='Expired before project',
        label_pt='Expirado antes do projeto',
    ),
    EvaluationStatus.FUTURE: StatusInfo(
        color_hex='#2563EB',
        label_en='Valid after project',
        label_pt='Válido após o projeto',
    ),
    EvaluationStatus.UNKNOWN: StatusInfo(
        color_hex='#9333EA',
        label_en='Dates missing or invalid',
        label_pt='Datas em falta ou inválidas',
    ),
}

# Default project window used when a project has no dates
DEFAULT_PROJECT_START = '2023-01-01'
DEFAULT_PROJECT_END = '2027-12-31'

# Conformity bands (percent)
CONFORMITY_HIGH = 80
CONFORMITY_MEDIUM = 50

# Short filter keys used by the search screen
CERTIFICATION_FILTER_KEYS: Dict[str, EvaluationType] = {
    'EPD': EvaluationType.EPD,
    'LCA': EvaluationType.LCA,
    'MI': EvaluationType.MANUFACTURER_INVENTORY,
    'REACH': EvaluationType.REACH_OPTIMIZATION,
    'HPD': EvaluationType.HEALTH_PRODUCT_DECLARATION,
    'C2C': EvaluationType.C2C,
    'Declare': EvaluationType.DECLARE,
    'PC': EvaluationType.PRODUCT_CIRCULARITY,
    'GGTPHD': EvaluationType.GLOBAL_GREEN_TAG,
    'FSC_PEFC': EvaluationType.FSC_PEFC,
    'ECOLABEL': EvaluationType.ECOLABEL,
}

DEFAULT_CONFIG = {
    'manufacturers': [
        'Madeiras & madeira', 'Amorim Cimentos', 'Test Manufacturer',
        'Silva Wood Industries', 'EcoMaterials Ltd', 'GreenBuild Corp',
    ],
    'categories': ['Wood', 'Concrete', 'Metal', 'Glass', 'Plastic', 'Ceramic'],
    'subcategories': {
        'Wood': ['Treated Wood', 'Natural Wood', 'Laminated Wood', 'Engineered Wood', 'Bamboo'],
        'Concrete': ['Standard Concrete', 'High Performance Concrete', 'Lightweight Concrete', 'Precast Concrete'],
        'Metal': ['Steel', 'Aluminum', 'Copper', 'Iron', 'Titanium'],
        'Glass': ['Standard Glass', 'Tempered Glass', 'Laminated Glass', 'Double Glazed'],
        'Plastic': ['PVC', 'Polyethylene', 'Polypropylene', 'Acrylic'],
        'Ceramic': ['Floor Tiles', 'Wall Tiles', 'Porcelain', 'Terracotta'],
    },
    'evaluationTypes': [t.value for t in EvaluationType],
}

# Placeholder categories left behind by manual testing
INVALID_CATEGORIES = ['AAAAAAAAAAA', 'ACategoria de teste', 'Categoriateste']
