import json
import threading

from conftest import JPEG, cam_headers


def post_frame(client, cam_id, key, data=JPEG, content_type='image/jpeg'):
    headers = cam_headers(key) if key is not None else {}
    return client.post(f'/api/cams/{cam_id}/frame', data=data,
                       headers=headers, content_type=content_type)


# =============================================================================
# HELLO
# =============================================================================

def test_hello_merges_telemetry(client, keys):
    r = client.post('/api/cams/home/hello', headers=cam_headers(keys['home']),
                    json={'ip': '192.168.1.40', 'rssi': -61, 'heap': 51234, 'version': '0.3.1'})

    assert r.status_code == 200
    assert r.get_json() == {'ok': True}
    assert r.headers['Cache-Control'] == 'no-store'

    cams = client.get('/api/cams').get_json()
    assert cams['home']['ip'] == '192.168.1.40'
    assert cams['home']['rssi'] == -61
    assert cams['home']['heap'] == 51234
    assert cams['home']['version'] == '0.3.1'
    assert 'helloAt' in cams['home'] and 'helloAtMs' in cams['home']


def test_hello_partial_update_keeps_previous_fields(client, keys):
    headers = cam_headers(keys['home'])
    client.post('/api/cams/home/hello', headers=headers,
                json={'ip': '192.168.1.40', 'rssi': -61, 'version': '0.3.1'})
    client.post('/api/cams/home/hello', headers=headers, json={'ip': '192.168.1.40', 'rssi': -70})

    record = client.get('/api/cams').get_json()['home']
    assert record['rssi'] == -70
    assert record['version'] == '0.3.1'


def test_hello_ignores_bad_fields(client, keys):
    r = client.post('/api/cams/home/hello', headers=cam_headers(keys['home']),
                    json={'ip': '10.0.0.2', 'rssi': 'strong', 'heap': True})

    assert r.status_code == 200
    record = client.get('/api/cams').get_json()['home']
    assert 'rssi' not in record
    assert 'heap' not in record


def test_hello_drops_numbers_too_large_for_float(client, keys):
    r = client.post('/api/cams/home/hello', headers=cam_headers(keys['home']),
                    data='{"ip":"10.0.0.2","rssi":1' + '0' * 400 + ',"heap":-1' + '0' * 400 + '}',
                    content_type='application/json')

    assert r.status_code == 200
    record = client.get('/api/cams').get_json()['home']
    assert record['ip'] == '10.0.0.2'
    assert 'rssi' not in record
    assert 'heap' not in record


def test_hello_without_ip_uses_source_address(client, keys):
    r = client.post('/api/cams/home/hello', headers=cam_headers(keys['home']),
                    data='not json', environ_base={'REMOTE_ADDR': '192.168.1.77'})

    assert r.status_code == 200
    assert client.get('/api/cams').get_json()['home']['ip'] == '192.168.1.77'


def test_hello_ignores_malformed_forwarded_address(client, keys):
    r = client.post('/api/cams/home/hello', headers={**cam_headers(keys['home']), 'X-Forwarded-For': 'h/x?'},
                    json={'rssi': -50})

    assert r.status_code == 200
    record = client.get('/api/cams').get_json()['home']
    assert record['rssi'] == -50
    assert 'ip' not in record


def test_hello_requires_key(client, keys):
    assert client.post('/api/cams/home/hello', json={}).status_code == 401
    r = client.post('/api/cams/home/hello', headers=cam_headers('0' * 48), json={})
    assert r.status_code == 401
    assert r.get_json() == {'error': 'unauthorized'}
    assert client.get('/api/cams').get_json() == {}


def test_hello_unknown_camera(client, keys):
    r = client.post('/api/cams/garage/hello', headers=cam_headers(keys['home']), json={})
    assert r.status_code == 404


def test_key_for_one_camera_rejected_for_another(client, keys):
    r = client.post('/api/cams/yard/hello', headers=cam_headers(keys['home']), json={})
    assert r.status_code == 401

    r = post_frame(client, 'yard', keys['home'])
    assert r.status_code == 401
    assert client.get('/cams/yard.jpg').status_code == 404


def test_auth_failure_is_audited(client, keys, tmp_path):
    client.post('/api/cams/yard/hello', headers=cam_headers(keys['home']), json={})

    log = (tmp_path / 'logs' / 'audit.log').read_text()
    assert 'DEVICE_AUTH_FAILURE' in log
    assert keys['home'] not in log


# =============================================================================
# FRAME
# =============================================================================

def test_frame_upload_then_read(client, keys):
    r = post_frame(client, 'home', keys['home'])
    assert r.status_code == 200
    assert r.get_json() == {'ok': True}

    img = client.get('/cams/home.jpg')
    assert img.status_code == 200
    assert img.mimetype == 'image/jpeg'
    assert img.headers['Cache-Control'] == 'no-store'
    assert img.data == JPEG

    assert client.get('/cams/yard.jpg').status_code == 404

    record = client.get('/api/cams').get_json()['home']
    assert record['bytes'] == len(JPEG)
    assert 'lastAt' in record and 'lastAtMs' in record


def test_frame_wrong_content_type(client, keys):
    r = post_frame(client, 'home', keys['home'], content_type='image/png')
    assert r.status_code == 415
    assert client.get('/cams/home.jpg').status_code == 404


def test_frame_content_type_with_parameters(client, keys):
    r = post_frame(client, 'home', keys['home'], content_type='image/jpeg; charset=binary')
    assert r.status_code == 200


def test_small_frame_rejected_without_side_effects(client, keys):
    post_frame(client, 'home', keys['home'])
    before = client.get('/api/cams').get_json()['home']

    r = post_frame(client, 'home', keys['home'], data=JPEG[:50])
    assert r.status_code == 400

    assert client.get('/cams/home.jpg').data == JPEG
    assert client.get('/api/cams').get_json()['home'] == before


def test_empty_frame_rejected(client, keys):
    r = post_frame(client, 'home', keys['home'], data=b'')
    assert r.status_code == 400
    assert client.get('/api/cams').get_json() == {}


def test_oversized_frame_rejected(make_app, tmp_path):
    app = make_app(MAX_CONTENT_LENGTH=1000)
    client = app.test_client()
    keys = json.loads((tmp_path / 'data' / 'keys.json').read_text())

    r = post_frame(client, 'home', keys['home'], data=JPEG * 4)

    assert r.status_code == 413
    assert client.get('/cams/home.jpg').status_code == 404


def test_frame_unknown_camera(client, keys):
    assert post_frame(client, 'garage', keys['home']).status_code == 404


def test_frame_missing_key(client):
    assert post_frame(client, 'home', None).status_code == 401


def test_frame_read_unknown_camera(client):
    assert client.get('/cams/garage.jpg').status_code == 404


# =============================================================================
# STATUS
# =============================================================================

def test_status_lists_only_reporting_cameras(client, keys):
    assert client.get('/api/cams').get_json() == {}

    client.post('/api/cams/yard/hello', headers=cam_headers(keys['yard']), json={'ip': '10.0.0.3'})

    r = client.get('/api/cams')
    assert r.headers['Cache-Control'] == 'no-store'
    assert list(r.get_json()) == ['yard']


def test_camera_list_and_health(client, keys):
    assert client.get('/api/cameras').get_json() == [
        {'id': 'home', 'name': 'Home'},
        {'id': 'yard', 'name': 'Yard'},
    ]

    client.post('/api/cams/home/hello', headers=cam_headers(keys['home']), json={'ip': '10.0.0.3'})
    health = client.get('/api/health').get_json()
    assert health['status'] == 'healthy'
    assert health['cameras'] == {'total': 2, 'online': 1}


def test_concurrent_requests_for_two_cameras(app, keys):
    errors = []

    def run(cam_id, ip, payload):
        client = app.test_client()
        headers = cam_headers(keys[cam_id])
        for _ in range(20):
            r1 = client.post(f'/api/cams/{cam_id}/hello', headers=headers, json={'ip': ip})
            r2 = post_frame(client, cam_id, keys[cam_id], data=payload)
            if r1.status_code != 200 or r2.status_code != 200:
                errors.append((cam_id, r1.status_code, r2.status_code))

    home_frame = JPEG + b'home'
    yard_frame = JPEG + b'yard-frame'
    threads = [
        threading.Thread(target=run, args=('home', '10.0.0.1', home_frame)),
        threading.Thread(target=run, args=('yard', '10.0.0.2', yard_frame)),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    client = app.test_client()
    cams = client.get('/api/cams').get_json()
    assert (cams['home']['ip'], cams['home']['bytes']) == ('10.0.0.1', len(home_frame))
    assert (cams['yard']['ip'], cams['yard']['bytes']) == ('10.0.0.2', len(yard_frame))
    assert client.get('/cams/home.jpg').data == home_frame
    assert client.get('/cams/yard.jpg').data == yard_frame
