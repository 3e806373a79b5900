"""
HTTP API (Flask test client)
"""

import io
import time

import pytest

CSV_BODY = (
    'id,name,manufacturer,area_m2,volume_m3,units\n'
    'M1,Oak Panel,WoodCo,20,,\n'
    'M2,Granite Slab,StoneCo,5,,\n'
    'M3,Concrete C30,,1,,\n'
)


def _upload(body: str, name: str = 'bill.csv'):
    return {'file': (io.BytesIO(body.encode('utf-8')), name)}


@pytest.fixture
def oak(client):
    resp = client.post('/api/materials', json={
        'name': 'Oak Panel', 'manufacturer': 'WoodCo', 'category': 'Wood',
        'evaluations': [{'type': 'EPD', 'version': '1.0', 'issueDate': '2022-01-01',
                         'validTo': '2022-06-30', 'conformity': 85}],
    })
    assert resp.status_code == 201
    return resp.get_json()


def test_health(client):
    assert client.get('/api/health').get_json() == {'status': 'ok'}


# ═══════════════════════════════════════════════════════
#  Materials
# ═══════════════════════════════════════════════════════

def test_material_crud(client, oak):
    material_id = oak['id']
    assert client.get(f'/api/materials/{material_id}').get_json()['name'] == 'Oak Panel'

    resp = client.put(f'/api/materials/{material_id}', json={'subcategory': 'Natural Wood'})
    assert resp.status_code == 200
    assert resp.get_json()['subcategory'] == 'Natural Wood'

    assert client.get('/api/materials').get_json()['total'] == 1
    assert client.delete(f'/api/materials/{material_id}').status_code == 200
    assert client.get(f'/api/materials/{material_id}').status_code == 404


def test_invalid_material_is_400(client):
    resp = client.post('/api/materials', json={'name': ''})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Invalid data'
    assert client.post('/api/materials', data='not json').status_code == 400


def test_missing_material_is_404(client):
    resp = client.delete('/api/materials/404')
    assert resp.status_code == 404
    assert 'not found' in resp.get_json()['error']


def test_search(client, oak):
    data = client.get('/api/materials/search?q=oak&cert=EPD').get_json()
    assert data['total'] == 1
    assert data['average_conformity'] == 85.0
    assert client.get('/api/materials/search?cert=C2C').get_json()['total'] == 0


def test_material_evaluations(client, oak):
    data = client.get(f"/api/materials/{oak['id']}/evaluations").get_json()
    epd = data['groups']['EPD'][0]
    assert epd['status'] == 'red'
    assert epd['band'] == 'high'

    data = client.get(f"/api/materials/{oak['id']}/evaluations"
                      '?project_start=2022-01-01&project_end=2022-12-31').get_json()
    assert data['groups']['EPD'][0]['status'] == 'green'


# ═══════════════════════════════════════════════════════
#  Evaluation helpers + files
# ═══════════════════════════════════════════════════════

def test_evaluation_conformity(client):
    resp = client.post('/api/evaluations/conformity', json={
        'type': 'C2C', 'documentId': True, 'inventoryAssessed01Wt1000ppm': True,
    })
    assert resp.get_json() == {'type': 'C2C', 'conformity': 50, 'band': 'medium'}
    assert client.post('/api/evaluations/conformity', json={'type': 'LEED'}).status_code == 400


def test_evaluation_version(client, oak):
    resp = client.post('/api/evaluations/version', json={'type': 'EPD', 'material_id': oak['id']})
    assert resp.get_json()['version'] == '1.1'
    resp = client.post('/api/evaluations/version', json={'type': 'LCA', 'existing': []})
    assert resp.get_json()['version'] == '1.0'
    assert client.post('/api/evaluations/version', json={'type': 'LEED'}).status_code == 400


def test_evaluation_file_roundtrip(client, oak):
    resp = client.post(
        f"/api/materials/{oak['id']}/files",
        data={'file': (io.BytesIO(b'%PDF-1.4 epd'), 'epd.pdf'), 'type': 'EPD', 'version': '1.0'},
        content_type='multipart/form-data',
    )
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['file_name'] == f"{oak['id']}EPDv1.0.pdf"

    download = client.get(f"/api/files/{body['file_id']}")
    assert download.status_code == 200
    assert download.data == b'%PDF-1.4 epd'
    assert client.get('/api/files/unknown').status_code == 404


# ═══════════════════════════════════════════════════════
#  Config + data exchange
# ═══════════════════════════════════════════════════════

def test_config(client):
    assert 'Wood' in client.get('/api/config').get_json()['categories']
    resp = client.put('/api/config', json={'categories': ['Wood', 'AAAAAAAAAAA']})
    assert resp.get_json()['categories'] == ['Wood', 'AAAAAAAAAAA']
    assert client.post('/api/config/clean').get_json()['categories'] == ['Wood']


def test_export_import(client, oak):
    exported = client.get('/api/data/export').get_json()
    assert len(exported['materials']) == 1

    resp = client.post('/api/data/import', json={'mode': 'merge', 'data': {
        'materials': [{'name': 'Cork Board', 'manufacturer': 'Amorim'}],
    }})
    assert resp.get_json()['added'] == 1

    resp = client.post('/api/data/import', data={
        'file': (io.BytesIO(b'{"materials": []}'), 'backup.json'), 'mode': 'replace',
    }, content_type='multipart/form-data')
    assert resp.get_json()['deleted'] == 2
    assert client.get('/api/materials').get_json()['total'] == 0

    assert client.post('/api/data/import', json={'mode': 'append', 'data': {}}).status_code == 400


# ═══════════════════════════════════════════════════════
#  Projects + material list import
# ═══════════════════════════════════════════════════════

def test_project_crud(client):
    resp = client.post('/api/projects', json={'name': 'Lisbon Office', 'startDate': '2024-01-01'})
    assert resp.status_code == 201
    project_id = resp.get_json()['id']

    resp = client.put(f'/api/projects/{project_id}', json={'description': 'HQ'})
    assert resp.get_json()['description'] == 'HQ'
    assert client.get('/api/projects').get_json()['total'] == 1
    assert client.delete(f'/api/projects/{project_id}').status_code == 200
    assert client.get(f'/api/projects/{project_id}').status_code == 404


def test_import_preview(client, oak):
    resp = client.post('/api/projects/import/preview', data=_upload(CSV_BODY),
                       content_type='multipart/form-data')
    assert resp.status_code == 200
    report = resp.get_json()
    assert (report['total'], report['processed'], report['matched']) == (3, 2, 1)
    assert report['errors'] == ['Row 4: Name and Manufacturer are required']
    assert report['materials'][0]['matched_material_id'] == oak['id']


def test_import_preview_rejects_bad_files(client):
    resp = client.post('/api/projects/import/preview', data=_upload('x', 'notes.txt'),
                       content_type='multipart/form-data')
    assert resp.status_code == 400

    resp = client.post('/api/projects/import/preview', data=_upload('', 'empty.csv'),
                       content_type='multipart/form-data')
    assert resp.status_code == 422
    assert resp.get_json()['failed'] is True


def test_project_import_batch(client, oak):
    project_id = client.post('/api/projects', json={'name': 'Lisbon Office'}).get_json()['id']

    resp = client.post(f'/api/projects/{project_id}/import', data=_upload(CSV_BODY),
                       content_type='multipart/form-data')
    assert resp.status_code == 202
    batch_id = resp.get_json()['batch_id']

    status = {}
    for _ in range(50):
        status = client.get(f'/api/projects/import/status/{batch_id}').get_json()
        if status['status'] in ('completed', 'error'):
            break
        time.sleep(0.1)

    assert status['status'] == 'completed'
    assert status['matched'] == 1
    materials = client.get(f'/api/projects/{project_id}').get_json()['materials']
    assert [m['id'] for m in materials] == ['M1', 'M2']


def test_unknown_batch_is_404(client):
    assert client.get('/api/projects/import/status/nope').status_code == 404


def test_import_into_missing_project(client):
    resp = client.post('/api/projects/99/import', data=_upload(CSV_BODY),
                       content_type='multipart/form-data')
    assert resp.status_code == 404
