# recipe_community/services/storage_service.py
import io
import uuid
import logging
from typing import List, Optional, Tuple
from flask import Flask
from firebase_admin import storage
from PIL import Image, UnidentifiedImageError
from werkzeug.datastructures import FileStorage

from recipe_community.core.errors import ValidationError, UpstreamFailure
from recipe_community.models.post import MediaItem

IMAGE_EXTENSIONS = ('jpg', 'jpeg', 'png', 'gif', 'webp', 'heic')
VIDEO_EXTENSIONS = ('mp4', 'mov', 'webm', 'm4v')


def detect_media_type(file: FileStorage) -> str:
    """Content-Type을 먼저 보고, 없으면 확장자로 image/video를 판별합니다."""
    content_type = (file.mimetype or '').lower()
    if content_type.startswith('image/'):
        return 'image'
    if content_type.startswith('video/'):
        return 'video'

    extension = _extension(file.filename)
    if extension in IMAGE_EXTENSIONS:
        return 'image'
    if extension in VIDEO_EXTENSIONS:
        return 'video'
    raise ValidationError(f"이미지 또는 동영상 파일만 업로드할 수 있습니다: {file.filename}")


def _extension(filename: Optional[str]) -> str:
    filename = filename or ''
    return filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''


class StorageService:
    """
    Firebase Storage에 커뮤니티 게시글 미디어를 업로드/삭제하는 서비스입니다.
    업로드는 전부 성공하거나 전부 취소되며(all-or-nothing), 일부만 올라간 상태로 게시글이 생성되지 않습니다.
    """

    def __init__(self):
        """
        클래스 인스턴스 생성 시 버킷을 None으로 초기화합니다.
        실제 버킷 객체는 init_app 메서드를 통해 주입됩니다.
        """
        self.bucket = None

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 Storage 버킷을 설정합니다.

        :param app: Flask 애플리케이션 객체
        """
        bucket_name = app.config.get('FIREBASE_STORAGE_BUCKET')
        if not bucket_name:
            raise ValueError("FIREBASE_STORAGE_BUCKET 설정이 .env 또는 설정 파일에 필요합니다.")

        self.bucket = storage.bucket(bucket_name)
        logging.info("StorageService: Firebase Storage 서비스가 성공적으로 초기화되었습니다.")

    def upload_post_media(self, user_id: str, files: List[FileStorage]) -> List[MediaItem]:
        """
        게시글에 첨부된 파일들을 순서대로 업로드하고 미디어 메타데이터 목록을 반환합니다.

        :param user_id: 업로드하는 사용자 ID (저장 경로에 사용)
        :param files: 멀티파트 요청의 'media' 파일 목록
        :return: 업로드 순서와 동일한 MediaItem 목록
        :raises ValidationError: 이미지/동영상이 아닌 파일이 있는 경우 (아무것도 업로드하지 않음)
        :raises UpstreamFailure: 업로드 도중 실패한 경우 (이미 올라간 파일은 삭제)
        """
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        # 형식 검사를 먼저 끝내서 잘못된 파일 때문에 일부만 업로드되는 일이 없도록 합니다.
        resource_types = [detect_media_type(f) for f in files]

        uploaded: List[MediaItem] = []
        try:
            for file, resource_type in zip(files, resource_types):
                uploaded.append(self._upload_one(user_id, file, resource_type))
        except Exception as e:
            logging.error(f"미디어 업로드 실패 (user_id: {user_id}, 완료 {len(uploaded)}/{len(files)}): {e}", exc_info=True)
            self.delete_media(uploaded)
            raise UpstreamFailure("미디어 업로드에 실패했습니다. 잠시 후 다시 시도해주세요.") from e
        return uploaded

    def _upload_one(self, user_id: str, file: FileStorage, resource_type: str) -> MediaItem:
        extension = _extension(file.filename)
        blob_name = f"community/{user_id}/{uuid.uuid4()}" + (f".{extension}" if extension else "")
        data = file.read()

        width, height = self._image_size(data) if resource_type == 'image' else (None, None)

        blob = self.bucket.blob(blob_name)
        blob.upload_from_string(data, content_type=file.mimetype or None)
        blob.make_public()

        return MediaItem(
            url=blob.public_url,
            resource_type=resource_type,
            format=extension or None,
            width=width,
            height=height,
            bytes=len(data),
            public_id=blob_name
        )

    @staticmethod
    def _image_size(data: bytes) -> Tuple[Optional[int], Optional[int]]:
        try:
            with Image.open(io.BytesIO(data)) as img:
                return img.size
        except (UnidentifiedImageError, OSError) as e:
            logging.warning(f"이미지 크기를 읽지 못했습니다: {e}")
            return None, None

    def delete_media(self, media: List[MediaItem]):
        """업로드된 미디어 blob을 삭제합니다. 개별 실패는 로그만 남기고 나머지를 계속 정리합니다."""
        if not self.bucket:
            return
        for item in media:
            if not item.public_id:
                continue
            try:
                blob = self.bucket.blob(item.public_id)
                if blob.exists():
                    blob.delete()
            except Exception as e:
                logging.error(f"Storage 미디어 삭제 실패 (public_id: {item.public_id}): {e}")
