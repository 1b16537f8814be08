# recipe_community/models/author.py
from dataclasses import dataclass
from typing import Optional, Dict, Any

@dataclass
class Author:
    """게시글/댓글 문서 내부에 비정규화되어 저장되는 작성 당시의 작성자 정보."""
    user_id: str
    name: str
    image_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Author":
        return cls(
            user_id=data.get('user_id'),
            name=data.get('name'),
            image_url=data.get('image_url')
        )
