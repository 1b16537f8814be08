# recipe_community/api/posts/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from recipe_community.core.errors import ValidationError
from recipe_community.services.feed_query import Page
from .schemas import (
    FeedQuerySchema, PageQuerySchema, SearchQuerySchema,
    PostCreateSchema, PostUpdateSchema, PostResponseSchema
)

posts_bp = Blueprint('posts_bp', __name__)


def _page_response(page: Page) -> dict:
    return {
        "posts": PostResponseSchema(many=True).dump(page.items),
        "total_pages": page.total_pages,
        "current_page": page.page,
        "total_posts": page.total
    }


# --- 조회 (비로그인 허용, 로그인 시 is_liked 계산) ---
@posts_bp.route('/', methods=['GET'])
@jwt_required(optional=True)
def get_posts():
    """피드 목록을 최신순으로 조회합니다. filter: all | trending | following"""
    post_service = current_app.services['posts']
    args = FeedQuerySchema().load(request.args)
    page = post_service.list_feed(args['filter'], args['page'], args['limit'], get_jwt_identity())
    return jsonify(_page_response(page)), 200

@posts_bp.route('/search', methods=['GET'])
@jwt_required(optional=True)
def search_posts():
    """
    게시글을 검색합니다.
    - 텍스트 검색 결과가 있으면 관련도순(search_method: text)
    - 없으면 부분 문자열 검색 결과를 최신순(search_method: regex)으로 반환합니다.
    """
    post_service = current_app.services['posts']
    args = SearchQuerySchema().load(request.args)
    result = post_service.search_posts(args['q'], args['page'], args['limit'], get_jwt_identity())
    response = _page_response(result.page)
    response.update({"query": result.query, "search_method": result.method})
    return jsonify(response), 200

@posts_bp.route('/user/<string:user_id>', methods=['GET'])
@jwt_required(optional=True)
def get_user_posts(user_id: str):
    post_service = current_app.services['posts']
    args = PageQuerySchema().load(request.args)
    page = post_service.list_user_posts(user_id, args['page'], args['limit'], get_jwt_identity())
    return jsonify(_page_response(page)), 200

@posts_bp.route('/<string:post_id>', methods=['GET'])
@jwt_required(optional=True)
def get_post(post_id: str):
    post_service = current_app.services['posts']
    post = post_service.get_post_for_viewer(post_id, get_jwt_identity())
    return jsonify(PostResponseSchema().dump(post)), 200


# --- 작성 / 수정 / 삭제 ---
@posts_bp.route('/', methods=['POST'])
@jwt_required()
def create_post():
    """
    게시글을 작성합니다. 멀티파트 폼(content, tags, recipe, media 파일 최대 5개) 또는 JSON을 받습니다.
    - 미디어는 게시글 저장 전에 모두 업로드되며, 하나라도 실패하면 게시글을 만들지 않습니다.
    - 게시글 저장이 실패하면 업로드한 미디어를 삭제합니다.
    """
    user_id = get_jwt_identity()
    post_service = current_app.services['posts']
    storage_service = current_app.services['storage']
    max_media = current_app.config['MAX_MEDIA_PER_POST']

    if request.is_json:
        data = PostCreateSchema().load(request.get_json() or {})
        files = []
    else:
        data = PostCreateSchema().load(request.form.to_dict())
        files = [f for f in request.files.getlist('media') if f and f.filename]

    if len(files) > max_media or len(data['media']) > max_media:
        raise ValidationError(f"미디어는 최대 {max_media}개까지 업로드할 수 있습니다.")

    media = storage_service.upload_post_media(user_id, files) if files else data['media']
    try:
        new_post = post_service.create_post(
            author_id=user_id,
            content=data['content'],
            author_name=data.get('author'),
            media=media,
            tags=data['tags'],
            recipe=data['recipe'],
            author_image=data.get('author_image'),
            expected_media_count=len(files) if files else None
        )
    except Exception:
        if files:
            logging.warning(f"게시글 생성 실패로 업로드한 미디어 {len(media)}개를 삭제합니다 (user_id: {user_id})")
            storage_service.delete_media(media)
        raise
    return jsonify(PostResponseSchema().dump(new_post.to_public_dict(user_id))), 201

@posts_bp.route('/<string:post_id>', methods=['PUT'])
@jwt_required()
def update_post(post_id: str):
    """[작성자 전용] 게시글의 content / tags / media를 부분 수정합니다."""
    user_id = get_jwt_identity()
    post_service = current_app.services['posts']
    data = PostUpdateSchema().load(request.get_json() or {})
    updated_post = post_service.update_post(post_id, user_id, data)
    return jsonify(PostResponseSchema().dump(updated_post.to_public_dict(user_id))), 200

@posts_bp.route('/<string:post_id>', methods=['DELETE'])
@jwt_required()
def delete_post(post_id: str):
    """[작성자 전용] 게시글과 모든 댓글을 삭제합니다."""
    user_id = get_jwt_identity()
    post_service = current_app.services['posts']
    post_service.delete_post(post_id, user_id)
    return jsonify({"message": "게시글이 삭제되었습니다."}), 200


# --- 좋아요 / 공유 ---
@posts_bp.route('/<string:post_id>/like', methods=['POST'])
@jwt_required()
def like_post(post_id: str):
    """좋아요를 누르거나 취소합니다. 응답의 likes / is_liked가 서버 기준 최종 상태입니다."""
    user_id = get_jwt_identity()
    post_service = current_app.services['posts']
    return jsonify(post_service.toggle_like(post_id, user_id)), 200

@posts_bp.route('/<string:post_id>/share', methods=['POST'])
@jwt_required()
def share_post(post_id: str):
    user_id = get_jwt_identity()
    post_service = current_app.services['posts']
    return jsonify(post_service.share_post(post_id, user_id)), 200
