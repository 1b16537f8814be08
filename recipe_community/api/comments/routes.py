# recipe_community/api/comments/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from recipe_community.api.comments.schemas import CommentCreateSchema, CommentResponseSchema
from recipe_community.api.posts.schemas import PageQuerySchema


comments_bp = Blueprint('comments_bp', __name__)

@comments_bp.route('/<string:post_id>/comment', methods=['POST'])
@jwt_required()
def create_comment(post_id: str):
    """
    특정 게시글에 새로운 댓글을 작성합니다.
    - 성공 시, 생성된 댓글 정보를 201 Created 상태 코드와 함께 반환합니다.
    - parent_id를 주면 같은 게시글의 댓글에 대한 답글로 저장됩니다.
    """
    comment_service = current_app.services['comments']
    user_id = get_jwt_identity()
    data = CommentCreateSchema().load(request.get_json() or {})
    new_comment = comment_service.add_comment(post_id, user_id, data['content'], data['parent_id'])
    return jsonify(CommentResponseSchema().dump(new_comment.to_dict())), 201

@comments_bp.route('/<string:post_id>/comments', methods=['GET'])
def get_comments(post_id: str):
    """
    특정 게시글의 댓글 목록을 최신순 페이지네이션으로 조회합니다.
    """
    comment_service = current_app.services['comments']
    args = PageQuerySchema().load(request.args)
    page = comment_service.list_comments(post_id, args['page'], args['limit'])
    return jsonify({
        "comments": CommentResponseSchema(many=True).dump(page.items),
        "current_page": page.page,
        "total_pages": page.total_pages,
        "total_comments": page.total
    }), 200


@comments_bp.route('/comments/<string:comment_id>', methods=['DELETE'])
@jwt_required()
def delete_comment(comment_id: str):
    """
    특정 댓글을 삭제합니다. (작성자 본인만 가능)
    - 성공 시, 게시물의 댓글 수가 1 감소합니다.
    """
    comment_service = current_app.services['comments']
    comment_service.delete_comment(comment_id, get_jwt_identity())
    return jsonify({"message": "댓글이 삭제되었습니다."}), 200


@comments_bp.route('/comments/<string:comment_id>/like', methods=['POST'])
@jwt_required()
def like_comment(comment_id: str):
    comment_service = current_app.services['comments']
    return jsonify(comment_service.like_comment(comment_id, get_jwt_identity())), 200


@comments_bp.route('/comments/<string:comment_id>/replies', methods=['GET'])
def get_replies(comment_id: str):
    comment_service = current_app.services['comments']
    return jsonify(comment_service.list_replies(comment_id)), 200
