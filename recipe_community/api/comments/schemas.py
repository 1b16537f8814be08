# recipe_community/api/comments/schemas.py
from marshmallow import Schema, fields, EXCLUDE
from recipe_community.api.posts.schemas import AuthorSchema # 작성자 정보는 게시글 스키마의 것을 재사용

class CommentCreateSchema(Schema):
    """
    POST /api/community/{post_id}/comment
    댓글 생성을 요청할 때의 데이터 형식을 정의합니다. 길이 제한은 서비스 계층에서 공백 제거 후 검사합니다.
    """
    class Meta:
        unknown = EXCLUDE

    content = fields.Str(required=True, error_messages={"required": "댓글 내용(content)은 필수 항목입니다."})
    parent_id = fields.Str(load_default=None, allow_none=True)

class CommentResponseSchema(Schema):
    """
    댓글 정보 응답을 위한 최종 JSON 형식을 정의합니다.
    """
    comment_id = fields.Str(required=True)
    post_id = fields.Str(required=True)
    author = fields.Nested(AuthorSchema, required=True)
    content = fields.Str(required=True)
    parent_id = fields.Str(allow_none=True)
    like_count = fields.Int(required=True)
    created_at = fields.DateTime(required=True)
