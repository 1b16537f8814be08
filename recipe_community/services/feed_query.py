# recipe_community/services/feed_query.py
"""
피드 조회 엔진: 페이지 요청을 정렬된 게시글 조각으로 바꾸고, 2단계 검색을 수행합니다.
"""
import logging
import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Generic, List, Tuple, TypeVar

from recipe_community.core.errors import ValidationError
from recipe_community.models.post import Post
from recipe_community.services import text_search
from recipe_community.services.post_store import PostStore
from recipe_community.utils.datetime_utils import DateTimeUtils

T = TypeVar('T')

FEED_FILTERS = ('all', 'trending', 'following')

SEARCH_METHOD_TEXT = 'text'
SEARCH_METHOD_REGEX = 'regex'


@dataclass
class Page(Generic[T]):
    """1부터 시작하는 페이지 번호 기준의 목록 조각."""
    items: List[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size)


@dataclass
class SearchResult:
    page: Page
    query: str
    method: str = SEARCH_METHOD_TEXT


def page_bounds(page: int, page_size: int) -> Tuple[int, int]:
    """(skip, limit) 계산. 범위를 벗어난 페이지는 오류가 아니라 빈 목록이 됩니다."""
    if page < 1:
        raise ValidationError("page는 1 이상이어야 합니다.")
    if page_size < 1:
        raise ValidationError("limit은 1 이상이어야 합니다.")
    return (page - 1) * page_size, page_size


def paginate(items: List[T], page: int, page_size: int) -> Page:
    """이미 정렬된 목록을 잘라 Page로 만듭니다."""
    skip, limit = page_bounds(page, page_size)
    return Page(items=items[skip:skip + limit], total=len(items), page=page, page_size=page_size)


class FeedQueryEngine:
    def __init__(self, store: PostStore, trending_window_days: int = 7,
                 clock: Callable = DateTimeUtils.now):
        self.store = store
        self.trending_window = timedelta(days=trending_window_days)
        self.clock = clock

    def list_recent(self, feed_filter: str, page: int, page_size: int) -> Page:
        """all / trending(최근 N일) / following(팔로우 관계가 없어 all과 동일) 피드."""
        if feed_filter not in FEED_FILTERS:
            raise ValidationError(f"지원하지 않는 필터입니다: {feed_filter}")
        skip, limit = page_bounds(page, page_size)

        since = None
        if feed_filter == 'trending':
            since = self.clock() - self.trending_window

        posts, total = self.store.list_recent(since=since, offset=skip, limit=limit)
        return Page(items=posts, total=total, page=page, page_size=page_size)

    def list_by_author(self, author_id: str, page: int, page_size: int) -> Page:
        skip, limit = page_bounds(page, page_size)
        posts, total = self.store.list_recent(author_id=author_id, offset=skip, limit=limit)
        return Page(items=posts, total=total, page=page, page_size=page_size)

    def search(self, query: str, page: int, page_size: int) -> SearchResult:
        """
        1단계: 토큰 일치 문서를 관련도 내림차순(동점이면 최신순)으로 정렬.
        2단계: 1단계 결과가 없으면 부분 문자열 일치 문서를 최신순으로 정렬.
        """
        if query is None or not query.strip():
            raise ValidationError("검색어를 입력해주세요.")
        query = query.strip()
        page_bounds(page, page_size)

        terms = text_search.query_terms(query)
        ranked: List[Post] = []
        if terms:
            scored = [(text_search.relevance_score(p, terms), p) for p in self.store.find_by_tokens(terms)]
            scored = [(score, p) for score, p in scored if score > 0]
            scored.sort(key=lambda sp: (sp[0], sp[1].created_at), reverse=True)
            ranked = [p for _, p in scored]

        if ranked:
            return SearchResult(page=paginate(ranked, page, page_size), query=query, method=SEARCH_METHOD_TEXT)

        logging.info(f"텍스트 검색 결과가 없어 부분 문자열 검색으로 전환합니다 (query: {query})")
        matched = [p for p in self.store.scan() if text_search.substring_match(p, query)]
        return SearchResult(page=paginate(matched, page, page_size), query=query, method=SEARCH_METHOD_REGEX)
