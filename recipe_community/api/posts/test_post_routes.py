# recipe_community/api/posts/test_post_routes.py
"""
게시글 API 통합 테스트 (TestingConfig, 메모리 저장소, 가짜 스토리지)
"""

import io
import json

BASE = '/api/community'


def create_post(client, headers, content="Pasta night", **extra):
    payload = {"content": content, "author": "Alice"}
    payload.update(extra)
    res = client.post(f'{BASE}/', json=payload, headers=headers)
    assert res.status_code == 201, res.get_json()
    return res.get_json()


def test_create_post_with_json(client, auth_headers):
    body = create_post(client, auth_headers('u1'), tags="pasta, dinner", recipe='{"servings": 2}')
    assert body['author'] == {"user_id": "u1", "name": "Alice", "image_url": None}
    assert body['tags'] == ['pasta', 'dinner']
    assert body['recipe'] == {"servings": 2}
    assert body['like_count'] == 0 and body['is_liked'] is False
    assert 'liked_by' not in body and 'search_tokens' not in body

def test_create_post_multipart_uploads_media(client, app, auth_headers):
    data = {
        'content': 'Kimchi stew',
        'author': 'Minji',
        'tags': json.dumps(['korean']),
        'media': [(io.BytesIO(b'img1'), 'a.jpg'), (io.BytesIO(b'img2'), 'b.jpg')],
    }
    res = client.post(f'{BASE}/', data=data, headers=auth_headers('u1'), content_type='multipart/form-data')
    assert res.status_code == 201
    body = res.get_json()
    assert [m['format'] for m in body['media']] == ['jpg', 'jpg']
    assert len(app.services['storage'].uploaded) == 2

def test_create_post_rejects_more_than_five_files(client, app, auth_headers):
    data = {
        'content': 'too many',
        'author': 'A',
        'media': [(io.BytesIO(b'x'), f'{i}.jpg') for i in range(6)],
    }
    res = client.post(f'{BASE}/', data=data, headers=auth_headers('u1'), content_type='multipart/form-data')
    assert res.status_code == 400
    assert res.get_json()['error_code'] == 'VALIDATION_ERROR'
    assert app.services['storage'].uploaded == []

def test_failed_upload_creates_no_post(client, app, auth_headers):
    app.services['storage'].fail_upload = True
    data = {'content': 'x', 'author': 'A', 'media': [(io.BytesIO(b'x'), 'a.jpg')]}
    res = client.post(f'{BASE}/', data=data, headers=auth_headers('u1'), content_type='multipart/form-data')
    assert res.status_code == 502
    assert res.get_json()['error_code'] == 'UPSTREAM_FAILURE'
    assert client.get(f'{BASE}/').get_json()['total_posts'] == 0

def test_post_creation_failure_deletes_uploaded_media(client, app, auth_headers):
    # 작성자 이름이 없고 프로필도 없으면 게시글 생성이 실패하므로 업로드한 미디어를 정리해야 한다
    data = {'content': 'x', 'media': [(io.BytesIO(b'x'), 'a.jpg')]}
    res = client.post(f'{BASE}/', data=data, headers=auth_headers('ghost'), content_type='multipart/form-data')
    assert res.status_code == 400
    storage = app.services['storage']
    assert [m.public_id for m in storage.deleted] == [m.public_id for m in storage.uploaded]

def test_create_requires_token(client):
    res = client.post(f'{BASE}/', json={"content": "x", "author": "A"})
    assert res.status_code == 401

def test_create_missing_content_is_schema_error(client, auth_headers):
    res = client.post(f'{BASE}/', json={"author": "A"}, headers=auth_headers('u1'))
    assert res.status_code == 400
    assert 'content' in res.get_json()['details']

def test_feed_pagination_and_is_liked(client, auth_headers):
    headers = auth_headers('u1')
    ids = [create_post(client, headers, content=f"post {i}")['post_id'] for i in range(3)]
    client.post(f'{BASE}/{ids[0]}/like', headers=auth_headers('viewer'))

    res = client.get(f'{BASE}/?page=1&limit=2', headers=auth_headers('viewer'))
    body = res.get_json()
    assert res.status_code == 200
    assert body['total_posts'] == 3 and body['total_pages'] == 2 and body['current_page'] == 1
    assert len(body['posts']) == 2

    page2 = client.get(f'{BASE}/?page=2&limit=2', headers=auth_headers('viewer')).get_json()
    assert [p['post_id'] for p in page2['posts']] == [ids[0]]
    assert page2['posts'][0]['is_liked'] is True

    anonymous = client.get(f'{BASE}/?page=2&limit=2').get_json()
    assert anonymous['posts'][0]['is_liked'] is False

def test_feed_invalid_query_values(client):
    assert client.get(f'{BASE}/?page=0').status_code == 400
    assert client.get(f'{BASE}/?filter=popular').status_code == 400
    assert client.get(f'{BASE}/?limit=500').get_json()['total_pages'] == 0

def test_search_endpoint_reports_method(client, auth_headers):
    create_post(client, auth_headers('u1'), content="Creamy pasta", tags=["Italian"])
    text = client.get(f'{BASE}/search?q=pasta').get_json()
    assert text['search_method'] == 'text' and text['query'] == 'pasta'
    assert text['total_posts'] == 1

    regex = client.get(f'{BASE}/search?q=TALI').get_json()
    assert regex['search_method'] == 'regex'
    assert len(regex['posts']) == 1

    assert client.get(f'{BASE}/search?q=%20%20').status_code == 400
    assert client.get(f'{BASE}/search').status_code == 400

def test_get_update_delete_post(client, auth_headers):
    owner, other = auth_headers('owner'), auth_headers('other')
    post_id = create_post(client, owner)['post_id']

    assert client.get(f'{BASE}/{post_id}').get_json()['content'] == 'Pasta night'
    assert client.get(f'{BASE}/missing').status_code == 404

    res = client.put(f'{BASE}/{post_id}', json={"content": "Hacked"}, headers=other)
    assert res.status_code == 403
    assert res.get_json()['error_code'] == 'FORBIDDEN'

    res = client.put(f'{BASE}/{post_id}', json={"content": "Ramen night", "tags": ["ramen"]}, headers=owner)
    assert res.status_code == 200
    assert res.get_json()['tags'] == ['ramen']

    assert client.delete(f'{BASE}/{post_id}', headers=other).status_code == 403
    res = client.delete(f'{BASE}/{post_id}', headers=owner)
    assert res.status_code == 200 and 'message' in res.get_json()
    assert client.get(f'{BASE}/{post_id}').status_code == 404

def test_user_posts_endpoint(client, auth_headers):
    create_post(client, auth_headers('a'), content="from a")
    create_post(client, auth_headers('b'), content="from b")
    body = client.get(f'{BASE}/user/a').get_json()
    assert [p['content'] for p in body['posts']] == ['from a']

def test_like_toggle_and_share_once(client, auth_headers):
    post_id = create_post(client, auth_headers('owner'))['post_id']
    viewer = auth_headers('viewer')

    assert client.post(f'{BASE}/{post_id}/like', headers=viewer).get_json() == {"likes": 1, "is_liked": True}
    assert client.post(f'{BASE}/{post_id}/like', headers=viewer).get_json() == {"likes": 0, "is_liked": False}

    assert client.post(f'{BASE}/{post_id}/share', headers=viewer).get_json() == {"shares": 1}
    assert client.post(f'{BASE}/{post_id}/share', headers=viewer).get_json() == {"shares": 1}
    assert client.post(f'{BASE}/missing/like', headers=viewer).status_code == 404
