# services/base_service.py
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, TypeVar, Generic, Any, Optional

if TYPE_CHECKING:
    from services.api_service import SigningAPIService
    from services.session_service import SigningSession

# データモデルを表すジェネリック型を定義
T = TypeVar('T')


class BaseService(Generic[T], ABC):
    """
    署名APIと同期するサービスクラスの基底となる抽象クラス（ABC）。

    データロードとセーブの共通インターフェースと、読み取り専用のチェックを定義します。
    具象サービスクラスは、特定のデータモデル（例: Draft）を扱うために、
    このクラスを継承し、抽象メソッドを実装する必要があります。

    Attributes:
        api_service (Optional['SigningAPIService']): API連携サービスへの参照。
        session (Optional['SigningSession']): 編集セッション（読み取り専用の判定に使用）。
    """

    def __init__(
        self,
        api_service: Optional['SigningAPIService'] = None,
        session: Optional['SigningSession'] = None
    ) -> None:
        """BaseServiceのコンストラクタ。

        Args:
            api_service (Optional[SigningAPIService]): APIサービスインスタンス。
            session (Optional[SigningSession]): 編集セッション。
        """
        self.api_service = api_service
        self.session = session

    def ensure_editable(self, action: str) -> None:
        """セッションが読み取り専用ならDocumentReadOnlyErrorを送出する。セッション未設定時は何もしない。"""
        if self.session is not None:
            self.session.ensure_editable(action)

    @abstractmethod
    def load_data(self, identifier: Any) -> Optional[T]:
        """
        指定された識別子を使用してデータを読み込むための抽象メソッド。

        Args:
            identifier (Any): データを一意に識別するためのキー（例: 文書ID）。

        Returns:
            Optional[T]: 読み込まれたデータモデルオブジェクト。見つからない場合はNone。
        """
        pass

    @abstractmethod
    def save_data(self, data: T) -> None:
        """
        データをAPIに保存するための抽象メソッド。

        Args:
            data (T): 保存するデータモデルオブジェクト。
        """
        pass
