# recipe_community/api/posts/schemas.py
import json
from flask import current_app
from marshmallow import Schema, fields, validate, post_load, EXCLUDE, ValidationError

from recipe_community.services.feed_query import FEED_FILTERS

# --- 폼 필드 변환 ---

class TagsField(fields.Field):
    """JSON 배열, 쉼표로 구분된 문자열, 리스트를 모두 받아 문자열 리스트로 변환합니다."""
    def _deserialize(self, value, attr, data, **kwargs):
        if value is None or value == '':
            return []
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except ValueError:
                parsed = value.split(',')
            value = parsed if isinstance(parsed, list) else [parsed]
        if not isinstance(value, (list, tuple)):
            raise ValidationError("tags는 배열 또는 쉼표로 구분된 문자열이어야 합니다.")
        return [str(tag).strip() for tag in value if str(tag).strip()]

class JSONObjectField(fields.Field):
    """객체 또는 JSON 문자열로 전달된 객체 (멀티파트 폼의 recipe 필드)."""
    def _deserialize(self, value, attr, data, **kwargs):
        if value is None or value == '':
            return None
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                raise ValidationError("올바른 JSON 형식이 아닙니다.")
        if not isinstance(value, dict):
            raise ValidationError("객체 형식이어야 합니다.")
        return value

    def _serialize(self, value, attr, obj, **kwargs):
        return value

# --- 재사용을 위한 중첩 스키마 ---

class AuthorSchema(Schema):
    """게시물/댓글 응답에 포함될 작성자 정보 스키마."""
    user_id = fields.Str(required=True)
    name = fields.Str(required=True)
    image_url = fields.Str(allow_none=True)

class MediaSchema(Schema):
    url = fields.Str(required=True)
    resource_type = fields.Str(load_default='image', validate=validate.OneOf(['image', 'video']))
    format = fields.Str(allow_none=True)
    width = fields.Int(allow_none=True)
    height = fields.Int(allow_none=True)
    bytes = fields.Int(allow_none=True)
    public_id = fields.Str(allow_none=True)

# --- 쿼리스트링 스키마 ---

class PageQuerySchema(Schema):
    """?page&limit 공통 스키마. limit 기본값/상한은 앱 설정을 따릅니다."""
    class Meta:
        unknown = EXCLUDE

    page = fields.Int(load_default=1, validate=validate.Range(min=1))
    limit = fields.Int(load_default=None, validate=validate.Range(min=1))

    @post_load
    def apply_page_size_limits(self, data, **kwargs):
        config = current_app.config
        limit = data.get('limit') or config['FEED_PAGE_SIZE']
        data['limit'] = min(limit, config['FEED_MAX_PAGE_SIZE'])
        return data

class FeedQuerySchema(PageQuerySchema):
    filter = fields.Str(load_default='all', validate=validate.OneOf(FEED_FILTERS))

class SearchQuerySchema(PageQuerySchema):
    # 빈 검색어 검사는 서비스 계층에서 수행합니다.
    q = fields.Str(required=True, error_messages={"required": "검색어(q)는 필수 항목입니다."})

# --- API 요청/응답 스키마 ---

class PostCreateSchema(Schema):
    """POST /api/community 요청 본문(멀티파트 폼 또는 JSON)의 유효성을 검사합니다."""
    class Meta:
        unknown = EXCLUDE

    content = fields.Str(required=True, validate=validate.Length(min=1, max=5000))
    tags = TagsField(load_default=list)
    recipe = JSONObjectField(load_default=None, allow_none=True)
    author = fields.Str(load_default=None, allow_none=True)
    author_image = fields.Str(load_default=None, allow_none=True)
    # JSON 요청에서만 사용: 이미 업로드된 미디어 메타데이터
    media = fields.List(fields.Nested(MediaSchema), load_default=list)

class PostUpdateSchema(Schema):
    """PUT /api/community/{post_id} 요청 본문. 모든 필드는 선택입니다."""
    content = fields.Str(validate=validate.Length(min=1, max=5000))
    tags = TagsField()
    media = fields.List(fields.Nested(MediaSchema))

class PostResponseSchema(Schema):
    """게시글 정보 응답을 위한 최종 JSON 형식. liked_by/shared_by는 포함하지 않습니다."""
    post_id = fields.Str(dump_only=True)
    author = fields.Nested(AuthorSchema, required=True)
    content = fields.Str(required=True)
    media = fields.List(fields.Nested(MediaSchema), required=True)
    tags = fields.List(fields.Str(), required=True)
    recipe = JSONObjectField(allow_none=True)
    like_count = fields.Int(required=True)
    share_count = fields.Int(required=True)
    comment_count = fields.Int(required=True)
    created_at = fields.DateTime(required=True)
    updated_at = fields.DateTime(required=True)
    is_liked = fields.Bool(dump_only=True, dump_default=False)
