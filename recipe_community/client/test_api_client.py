# recipe_community/client/test_api_client.py

from unittest.mock import MagicMock

import pytest
import requests

from recipe_community.client.api_client import ApiError, CommunityApiClient


def make_response(status=200, body=None, reason='OK'):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.reason = reason
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def api(session):
    return CommunityApiClient('http://localhost:5000/', token='tok', session=session, timeout=3)


def test_bearer_token_and_url(api, session):
    session.request.return_value = make_response(body={"likes": 1, "is_liked": True})

    assert api.like_post('p1') == {"likes": 1, "is_liked": True}

    session.request.assert_called_once_with(
        'POST', 'http://localhost:5000/api/community/p1/like',
        headers={'Authorization': 'Bearer tok'}, timeout=3
    )

def test_anonymous_requests_have_no_auth_header(session):
    session.request.return_value = make_response(body={"posts": []})
    CommunityApiClient('http://api', session=session).list_posts(page=2, limit=5, feed_filter='trending')
    _, kwargs = session.request.call_args
    assert kwargs['headers'] == {}
    assert kwargs['params'] == {'page': 2, 'filter': 'trending', 'limit': 5}

def test_error_body_becomes_api_error(api, session):
    session.request.return_value = make_response(403, {"error_code": "FORBIDDEN", "message": "권한 없음"}, 'FORBIDDEN')
    with pytest.raises(ApiError) as exc_info:
        api.delete_post('p1')
    assert exc_info.value.status == 403
    assert exc_info.value.error_code == 'FORBIDDEN'
    assert exc_info.value.message == '권한 없음'

def test_jwt_error_and_non_json_error(api, session):
    session.request.return_value = make_response(401, {"msg": "Missing Authorization Header"}, 'UNAUTHORIZED')
    with pytest.raises(ApiError) as exc_info:
        api.share_post('p1')
    assert exc_info.value.message == "Missing Authorization Header"
    assert exc_info.value.error_code == 'HTTP_ERROR'

    session.request.return_value = make_response(502, None, 'Bad Gateway')
    with pytest.raises(ApiError) as exc_info:
        api.get_post('p1')
    assert exc_info.value.message == 'Bad Gateway'

def test_network_failure_becomes_api_error(api, session):
    session.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(ApiError) as exc_info:
        api.list_comments('p1')
    assert exc_info.value.status is None
    assert exc_info.value.error_code == 'NETWORK_ERROR'

def test_non_json_success_body_becomes_api_error(api, session):
    session.request.return_value = make_response(200, None)
    with pytest.raises(ApiError) as exc_info:
        api.like_post('p1')
    assert exc_info.value.status == 200
    assert exc_info.value.error_code == 'INVALID_RESPONSE'

def test_create_post_json_and_multipart(api, session):
    session.request.return_value = make_response(201, {"post_id": "p1"})

    api.create_post("Pasta", tags=["pasta"], recipe={"servings": 2}, author="Alice")
    _, kwargs = session.request.call_args
    assert kwargs['json'] == {'content': 'Pasta', 'tags': ['pasta'], 'recipe': {'servings': 2}, 'author': 'Alice'}

    api.create_post("Pasta", tags=["pasta"], files=[('a.jpg', b'123', 'image/jpeg')])
    _, kwargs = session.request.call_args
    assert kwargs['data'] == {'content': 'Pasta', 'tags': '["pasta"]'}
    assert kwargs['files'] == [('media', ('a.jpg', b'123', 'image/jpeg'))]

def test_comment_endpoints(api, session):
    session.request.return_value = make_response(body={})
    api.add_comment('p1', 'hello', parent_id='c0')
    args, kwargs = session.request.call_args
    assert args == ('POST', 'http://localhost:5000/api/community/p1/comment')
    assert kwargs['json'] == {'content': 'hello', 'parent_id': 'c0'}

    api.delete_comment('c1')
    assert session.request.call_args[0] == ('DELETE', 'http://localhost:5000/api/community/comments/c1')

    session.request.return_value = make_response(body=[])
    assert api.list_replies('c1') == []
    assert session.request.call_args[0][1].endswith('/comments/c1/replies')
