"""
═══════════════════════════════════════════════════════════════
Material Catalog Seed Script
Fills an empty catalog with sample materials and the full pick lists
═══════════════════════════════════════════════════════════════
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from catalog.constants import EvaluationType
from catalog.store import add_material, get_materials, init_catalog_tables, save_config

DB_PATH = os.path.join(os.path.dirname(__file__), '..', 'data', 'catalog.db')

SEED_CONFIG = {
    'manufacturers': [
        'Madeiras & madeira', 'Amorim Cimentos', 'Test Manufacturer', 'Silva Wood Industries',
        'EcoMaterials Ltd', 'GreenBuild Corp', 'Sustainable Materials Co', 'TechBuild Solutions',
    ],
    'categories': ['Wood', 'Concrete', 'Metal', 'Glass', 'Plastic', 'Ceramic', 'Composite', 'Insulation'],
    'subcategories': {
        'Wood': ['Treated Wood', 'Natural Wood', 'Laminated Wood', 'Engineered Wood', 'Bamboo', 'Cork'],
        'Concrete': ['Standard Concrete', 'High Performance Concrete', 'Lightweight Concrete',
                     'Precast Concrete', 'Reinforced Concrete'],
        'Metal': ['Steel', 'Aluminum', 'Copper', 'Iron', 'Titanium', 'Stainless Steel'],
        'Glass': ['Standard Glass', 'Tempered Glass', 'Laminated Glass', 'Double Glazed', 'Smart Glass'],
        'Plastic': ['PVC', 'Polyethylene', 'Polypropylene', 'Acrylic', 'Polycarbonate'],
        'Ceramic': ['Floor Tiles', 'Wall Tiles', 'Porcelain', 'Terracotta', 'Technical Ceramics'],
        'Composite': ['Fiber Reinforced', 'Carbon Fiber', 'Glass Fiber', 'Natural Fiber'],
        'Insulation': ['Mineral Wool', 'Foam', 'Natural Fiber', 'Reflective'],
    },
    'evaluationTypes': [t.value for t in EvaluationType],
}

SEED_MATERIALS = [
    {
        'name': 'European Oak Flooring',
        'manufacturer': 'Silva Wood Industries',
        'category': 'Wood',
        'subcategory': 'Natural Wood',
        'description': 'Premium European oak flooring with natural finish',
        'evaluations': [
            {'type': 'EPD', 'version': '1.2', 'issueDate': '2023-01-15', 'validTo': '2028-01-15',
             'conformity': 95, 'geographicArea': 'Europe', 'documentId': True, 'epdOwner': True,
             'referencePcr': True, 'includeFunctionalUnit': True, 'manufacturingLocations': True},
            {'type': 'FSC / PEFC', 'version': '1.0', 'issueDate': '2023-03-01', 'validTo': '2026-03-01',
             'conformity': 100},
        ],
    },
    {
        'name': 'High Performance Concrete Mix',
        'manufacturer': 'Amorim Cimentos',
        'category': 'Concrete',
        'subcategory': 'High Performance Concrete',
        'description': 'Advanced concrete mix for structural applications',
        'evaluations': [
            {'type': 'EPD', 'version': '2.1', 'issueDate': '2023-06-01', 'validTo': '2028-06-01',
             'conformity': 88, 'geographicArea': 'Europe', 'documentId': True, 'programOperator': True},
            {'type': 'LCA', 'version': '1.0', 'issueDate': '2023-04-15', 'validTo': '2027-04-15',
             'conformity': 75, 'geographicArea': 'Europe', 'milestonesForImprovements': True},
        ],
    },
    {
        'name': 'Recycled Aluminum Panel',
        'manufacturer': 'EcoMaterials Ltd',
        'category': 'Metal',
        'subcategory': 'Aluminum',
        'description': 'Sustainable aluminum panels made from recycled content',
        'evaluations': [
            {'type': 'C2C', 'version': '3.1', 'issueDate': '2023-02-20', 'validTo': '2026-02-20',
             'conformity': 92, 'documentId': True, 'productCircularityScore': 'Gold'},
            {'type': 'Product Circularity', 'version': '1.5', 'issueDate': '2023-05-10',
             'validTo': '2027-05-10', 'conformity': 85,
             'reusedOrSalvage': 'Contains 80% recycled aluminum content',
             'biobasedRecycledContent': '80% recycled content verified by third party',
             'extendedProducerResponsability': 'Active EPR program with take-back services'},
        ],
    },
    {
        'name': 'Low-E Double Glazed Window',
        'manufacturer': 'GreenBuild Corp',
        'category': 'Glass',
        'subcategory': 'Double Glazed',
        'description': 'Energy efficient double glazed windows with low emissivity coating',
        'evaluations': [
            {'type': 'Health Product Declaration', 'version': '2.0', 'issueDate': '2023-07-01',
             'validTo': '2026-07-01', 'conformity': 78, 'geographicArea': 'North America',
             'documentId': True, 'hazardsFullDisclosed': True},
        ],
    },
    {
        'name': 'Eco-Friendly PVC Flooring',
        'manufacturer': 'Sustainable Materials Co',
        'category': 'Plastic',
        'subcategory': 'PVC',
        'description': 'Environmentally conscious PVC flooring with reduced chemical emissions',
        'evaluations': [
            {'type': 'REACH Optimization', 'version': '1.1', 'issueDate': '2023-08-15',
             'validTo': '2026-08-15', 'conformity': 100, 'geographicArea': 'Europe', 'documentId': True},
            {'type': 'Declare', 'version': '1.0', 'issueDate': '2023-09-01', 'validTo': '2026-09-01',
             'conformity': 95, 'documentId': True, 'externalIndependentReviewer': True},
        ],
    },
]


def seed_catalog(db_path: str) -> int:
    """Seed an empty catalog. Returns the number of materials added (0 if already seeded)."""
    init_catalog_tables(db_path)
    if get_materials(db_path):
        print("Catalog already seeded")
        return 0

    save_config(db_path, SEED_CONFIG)
    for material in SEED_MATERIALS:
        add_material(db_path, material)

    print(f"✅ Catalog seeded with {len(SEED_MATERIALS)} materials")
    return len(SEED_MATERIALS)


if __name__ == '__main__':
    target = sys.argv[1] if len(sys.argv) > 1 else DB_PATH
    os.makedirs(os.path.dirname(os.path.abspath(target)), exist_ok=True)
    seed_catalog(target)
