# recipe_community/api/comments/test_comment_routes.py

from recipe_community.models.user import UserProfile

BASE = '/api/community'


def make_post(client, headers):
    res = client.post(f'{BASE}/', json={"content": "Pasta night", "author": "Owner"}, headers=headers)
    return res.get_json()['post_id']


def test_comment_lifecycle(client, app, auth_headers):
    app.services['profiles'].add_profile(UserProfile(user_id='cook-0001', display_name='Cook'))
    post_id = make_post(client, auth_headers('owner'))
    cook = auth_headers('cook-0001')

    res = client.post(f'{BASE}/{post_id}/comment', json={"content": "looks great"}, headers=cook)
    assert res.status_code == 201
    comment = res.get_json()
    assert comment['author']['name'] == 'Cook'
    assert comment['parent_id'] is None

    listing = client.get(f'{BASE}/{post_id}/comments').get_json()
    assert listing['total_comments'] == 1 and listing['current_page'] == 1 and listing['total_pages'] == 1
    assert listing['comments'][0]['comment_id'] == comment['comment_id']
    assert client.get(f'{BASE}/{post_id}').get_json()['comment_count'] == 1

    res = client.delete(f'{BASE}/comments/{comment["comment_id"]}', headers=auth_headers('owner'))
    assert res.status_code == 403

    res = client.delete(f'{BASE}/comments/{comment["comment_id"]}', headers=cook)
    assert res.status_code == 200 and 'message' in res.get_json()
    assert client.get(f'{BASE}/{post_id}').get_json()['comment_count'] == 0

def test_comment_without_profile_uses_short_id(client, auth_headers):
    post_id = make_post(client, auth_headers('owner'))
    res = client.post(f'{BASE}/{post_id}/comment', json={"content": "hi"}, headers=auth_headers('0123456789abcdef'))
    assert res.get_json()['author']['name'] == '01234567'

def test_comment_validation_and_not_found(client, auth_headers):
    headers = auth_headers('u1')
    post_id = make_post(client, headers)
    assert client.post(f'{BASE}/{post_id}/comment', json={}, headers=headers).status_code == 400
    assert client.post(f'{BASE}/{post_id}/comment', json={"content": "  "}, headers=headers).status_code == 400
    assert client.post(f'{BASE}/{post_id}/comment', json={"content": "x" * 501}, headers=headers).status_code == 400
    assert client.post(f'{BASE}/missing/comment', json={"content": "hi"}, headers=headers).status_code == 404
    assert client.post(f'{BASE}/{post_id}/comment', json={"content": "hi"}).status_code == 401
    assert client.delete(f'{BASE}/comments/unknown', headers=headers).status_code == 404

def test_comment_like_and_replies_placeholders(client, auth_headers):
    headers = auth_headers('u1')
    post_id = make_post(client, headers)
    comment_id = client.post(f'{BASE}/{post_id}/comment', json={"content": "hi"}, headers=headers).get_json()['comment_id']

    res = client.post(f'{BASE}/comments/{comment_id}/like', headers=headers)
    assert res.status_code == 200
    assert res.get_json()['comment_id'] == comment_id
    assert client.post(f'{BASE}/comments/unknown/like', headers=headers).status_code == 404

    res = client.get(f'{BASE}/comments/{comment_id}/replies')
    assert res.status_code == 200 and res.get_json() == []
