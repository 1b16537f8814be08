# recipe_community/services/text_search.py
"""
게시글 검색에 쓰이는 텍스트 처리 함수 모음.

- 1단계(text): 본문/작성자명/태그를 토큰화해 문서마다 search_tokens로 저장해 두고,
  질의 토큰과 겹치는 문서를 관련도 점수로 정렬합니다.
- 2단계(regex): 1단계 결과가 없을 때 대소문자 구분 없는 부분 문자열 일치로 찾습니다.
"""
import re
from typing import List, Iterable, Dict

from recipe_community.models.post import Post

# 필드별 가중치 (모두 1: 단일 텍스트 인덱스의 기본 가중치와 동일)
FIELD_WEIGHTS: Dict[str, float] = {
    'content': 1.0,
    'author': 1.0,
    'tags': 1.0,
}

STOP_WORDS = frozenset("""
a an and are as at be but by for from has have i in is it its my of on or our so
that the their this to was we were will with you your
""".split())

_TOKEN_PATTERN = re.compile(r"[^\W_]+", re.UNICODE)


def _stem(token: str) -> str:
    # 복수형만 가볍게 정규화 (recipes -> recipe, berries -> berry, tomatoes -> tomato)
    if len(token) > 4 and token.endswith('ies'):
        return token[:-3] + 'y'
    if len(token) > 4 and token.endswith('oes'):
        return token[:-2]
    if len(token) > 3 and token.endswith('s') and not token.endswith(('ss', 'us', 'is')):
        return token[:-1]
    return token


def tokenize(text: str) -> List[str]:
    """소문자화, 불용어 제거, 복수형 정규화를 거친 토큰 목록 (순서/중복 유지)."""
    if not text:
        return []
    tokens = _TOKEN_PATTERN.findall(text.lower())
    return [_stem(t) for t in tokens if t not in STOP_WORDS]


def _field_tokens(post: Post) -> Dict[str, List[str]]:
    return {
        'content': tokenize(post.content),
        'author': tokenize(post.author.name or ''),
        'tags': [t for tag in post.tags for t in tokenize(tag)],
    }


def index_tokens(post: Post) -> List[str]:
    """Post.search_tokens에 저장할 중복 없는 토큰 목록."""
    seen = []
    for tokens in _field_tokens(post).values():
        for token in tokens:
            if token not in seen:
                seen.append(token)
    return seen


def query_terms(query: str) -> List[str]:
    """검색어의 중복 없는 토큰 목록. 불용어만 있는 검색어는 빈 목록이 됩니다."""
    return list(dict.fromkeys(tokenize(query)))


def relevance_score(post: Post, terms: Iterable[str]) -> float:
    """
    필드별로 `weight * tf / (0.5 + 0.5 * 필드 토큰 수)`를 더하고,
    일치한 검색어마다 0.5를 더합니다. 일치하는 검색어가 없으면 0.
    """
    terms = list(terms)
    score = 0.0
    matched = set()
    for field_name, tokens in _field_tokens(post).items():
        if not tokens:
            continue
        weight = FIELD_WEIGHTS[field_name]
        length_norm = 0.5 + 0.5 * len(tokens)
        for term in terms:
            tf = tokens.count(term)
            if tf:
                score += weight * tf / length_norm
                matched.add(term)
    return score + 0.5 * len(matched)


def substring_match(post: Post, query: str) -> bool:
    """본문, 작성자명, 태그 중 하나라도 검색어를 (대소문자 무시) 포함하면 True."""
    needle = query.strip().casefold()
    if not needle:
        return False
    if needle in (post.content or '').casefold():
        return True
    if needle in (post.author.name or '').casefold():
        return True
    return any(needle in (tag or '').casefold() for tag in post.tags)
