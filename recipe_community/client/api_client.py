# recipe_community/client/api_client.py

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

API_PREFIX = '/api/community'


class ApiError(Exception):
    """서버가 오류 응답을 돌려주었거나 요청 자체가 실패한 경우."""

    def __init__(self, status: Optional[int], error_code: str, message: str):
        super().__init__(f"[{status}] {error_code}: {message}")
        self.status = status
        self.error_code = error_code
        self.message = message


class CommunityApiClient:
    """
    커뮤니티 피드 HTTP API 클라이언트. 엔드포인트마다 메서드 하나를 제공합니다.
    - 로그인 상태면 Authorization: Bearer 헤더를 붙입니다.
    - 2xx가 아닌 응답은 서버의 error_code/message를 담은 ApiError로 변환합니다.
    """
    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop('headers', {})
        if self.token:
            headers['Authorization'] = f"Bearer {self.token}"
        url = f"{self.base_url}{API_PREFIX}{path}"

        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logging.error(f"API 요청 실패 ({method} {url}): {e}")
            raise ApiError(None, "NETWORK_ERROR", "서버에 연결할 수 없습니다.") from e

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = {}
            # flask-jwt-extended의 401 응답은 'msg' 키를 사용합니다.
            message = body.get('message') or body.get('msg') or response.reason or "요청을 처리하지 못했습니다."
            raise ApiError(response.status_code, body.get('error_code', 'HTTP_ERROR'), message)

        try:
            return response.json()
        except ValueError as e:
            logging.error(f"응답 본문 해석 실패 ({method} {url}): {e}")
            raise ApiError(response.status_code, "INVALID_RESPONSE", "서버 응답을 해석할 수 없습니다.") from e

    # --- 게시글 조회 ---
    def list_posts(self, page: int = 1, limit: Optional[int] = None, feed_filter: str = 'all') -> Dict[str, Any]:
        params = {'page': page, 'filter': feed_filter}
        if limit:
            params['limit'] = limit
        return self._request('GET', '/', params=params)

    def search_posts(self, query: str, page: int = 1, limit: Optional[int] = None) -> Dict[str, Any]:
        params = {'q': query, 'page': page}
        if limit:
            params['limit'] = limit
        return self._request('GET', '/search', params=params)

    def list_user_posts(self, user_id: str, page: int = 1, limit: Optional[int] = None) -> Dict[str, Any]:
        params = {'page': page}
        if limit:
            params['limit'] = limit
        return self._request('GET', f'/user/{user_id}', params=params)

    def get_post(self, post_id: str) -> Dict[str, Any]:
        return self._request('GET', f'/{post_id}')

    # --- 게시글 작성 / 수정 / 삭제 ---
    def create_post(self, content: str, tags: Optional[List[str]] = None, recipe: Optional[Dict[str, Any]] = None,
                    author: Optional[str] = None, author_image: Optional[str] = None,
                    files: Optional[List[Tuple[str, bytes, str]]] = None) -> Dict[str, Any]:
        """
        files가 있으면 멀티파트 폼으로, 없으면 JSON으로 전송합니다.

        :param files: (파일명, 바이트, MIME 타입) 목록
        """
        if files:
            form = {'content': content, 'tags': json.dumps(tags or [])}
            if recipe is not None:
                form['recipe'] = json.dumps(recipe)
            if author:
                form['author'] = author
            if author_image:
                form['author_image'] = author_image
            multipart = [('media', (name, data, mimetype)) for name, data, mimetype in files]
            return self._request('POST', '/', data=form, files=multipart)

        payload = {'content': content, 'tags': tags or [], 'recipe': recipe}
        if author:
            payload['author'] = author
        if author_image:
            payload['author_image'] = author_image
        return self._request('POST', '/', json=payload)

    def update_post(self, post_id: str, **changes) -> Dict[str, Any]:
        return self._request('PUT', f'/{post_id}', json=changes)

    def delete_post(self, post_id: str) -> Dict[str, Any]:
        return self._request('DELETE', f'/{post_id}')

    # --- 좋아요 / 공유 ---
    def like_post(self, post_id: str) -> Dict[str, Any]:
        return self._request('POST', f'/{post_id}/like')

    def share_post(self, post_id: str) -> Dict[str, Any]:
        return self._request('POST', f'/{post_id}/share')

    # --- 댓글 ---
    def add_comment(self, post_id: str, content: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        return self._request('POST', f'/{post_id}/comment', json={'content': content, 'parent_id': parent_id})

    def list_comments(self, post_id: str, page: int = 1, limit: Optional[int] = None) -> Dict[str, Any]:
        params = {'page': page}
        if limit:
            params['limit'] = limit
        return self._request('GET', f'/{post_id}/comments', params=params)

    def delete_comment(self, comment_id: str) -> Dict[str, Any]:
        return self._request('DELETE', f'/comments/{comment_id}')

    def like_comment(self, comment_id: str) -> Dict[str, Any]:
        return self._request('POST', f'/comments/{comment_id}/like')

    def list_replies(self, comment_id: str) -> List[Dict[str, Any]]:
        return self._request('GET', f'/comments/{comment_id}/replies')
