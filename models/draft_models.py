# models/draft_models.py
from dataclasses import dataclass, field
from typing import Any, Dict, List

from models.annotation_models import Annotation, Signature, TextField


@dataclass
class Draft:
    """サーバーに保存される注釈の下書き（スナップショット）を表現するデータモデル。

    Attributes:
        document_id (int): 対象文書のID。
        text_fields (List[TextField]): テキスト欄のリスト。
        signatures (List[Signature]): 署名のリスト。
    """
    document_id: int
    text_fields: List[TextField] = field(default_factory=list)
    signatures: List[Signature] = field(default_factory=list)

    @classmethod
    def from_annotations(cls, document_id: int, annotations: List[Annotation]) -> 'Draft':
        """注釈のリストを種類ごとに振り分けてDraftを作成する。順序は保持される。"""
        return cls(
            document_id=document_id,
            text_fields=[a for a in annotations if isinstance(a, TextField)],
            signatures=[a for a in annotations if isinstance(a, Signature)],
        )

    @property
    def annotations(self) -> List[Annotation]:
        return [*self.text_fields, *self.signatures]

    def is_empty(self) -> bool:
        return not self.text_fields and not self.signatures

    def to_payload(self) -> Dict[str, Any]:
        """下書き保存・送信APIのリクエストボディに変換する。

        常に注釈モデル全体を送る（差分ではない）。同じ注釈モデルからは常に同じ辞書が得られる。
        """
        return {
            'textFields': [tf.to_payload() for tf in self.text_fields],
            'signatures': [sig.to_payload() for sig in self.signatures],
        }

    @classmethod
    def from_payload(cls, document_id: int, data: Dict[str, Any]) -> 'Draft':
        """APIのレスポンスからDraftを復元する。キーが欠けている場合は空として扱う。"""
        return cls(
            document_id=document_id,
            text_fields=[TextField.from_payload(item) for item in data.get('textFields') or []],
            signatures=[Signature.from_payload(item) for item in data.get('signatures') or []],
        )
