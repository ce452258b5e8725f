# services/signature_service.py
import mimetypes
import os
from typing import Optional

from loguru import logger

from models.annotation_models import DEFAULT_SIGNATURE_HEIGHT, DEFAULT_SIGNATURE_WIDTH
from models.errors import (
    AssetResolutionError, FileTooLarge, ImageTooLarge, InvalidImageType,
    NetworkError, NoSignatureArtifact,
)
from models.signature_models import (
    DrawingSurface, DrawnSignature, SignatureArtifact, SignatureCapture, SignatureSource,
    UploadedSignature,
)
from services.api_service import SigningAPIService
from services.asset_service import AssetCache
from services.session_service import SigningSession
from utils.image_utils import fit_signature_size, image_dimensions

# --- アップロード画像の制限 ---
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
MAX_IMAGE_DIMENSION = 2000
ALLOWED_MIME_TYPES = frozenset({"image/png", "image/jpeg", "image/jpg"})

DRAWN_FILE_NAME = "signature.png"


def guess_mime_type(file_name: str) -> Optional[str]:
    mime_type, _ = mimetypes.guess_type(file_name)
    return mime_type


class SignatureCaptureService:
    """署名の取得（手書き・画像アップロード）と、配置用の署名画像の準備を管理するサービスクラス。

    有効な取得元（SignatureSource）は常に一つだけで、最後に完了した取得操作が優先されます。
    手書きの線を描き終えると手書きが、画像のアップロードに成功するとアップロード画像が
    有効になります。

    Attributes:
        source (Optional[SignatureSource]): 現在有効な署名の取得元。
    """

    def __init__(self, api_service: SigningAPIService, assets: AssetCache, session: SigningSession) -> None:
        """SignatureCaptureServiceのコンストラクタ。

        Args:
            api_service (SigningAPIService): 署名画像のアップロード・取得に使うAPIサービス。
            assets (AssetCache): 取得した署名画像を保持するキャッシュ。
            session (SigningSession): 編集セッション。
        """
        self.api_service = api_service
        self.assets = assets
        self.session = session
        self.source: Optional[SignatureSource] = None

    @property
    def has_signature(self) -> bool:
        """配置可能な署名（手書きの内容、またはアップロード済み画像）があるかどうか。"""
        if isinstance(self.source, DrawnSignature):
            return self.source.surface.has_content()
        return self.source is not None

    # --- 手書き ---
    def mark_drawn(self, surface: DrawingSurface) -> None:
        """キャンバスへの線の描画が完了したときに呼び出す。手書きが有効な取得元になる。"""
        self.session.ensure_editable("署名を描画")
        self.source = DrawnSignature(surface=surface)

    def clear(self) -> None:
        """手書きの内容とアップロード済みの参照を破棄する。"""
        if isinstance(self.source, DrawnSignature):
            self.source.surface.clear()
        self.source = None

    # --- アップロード ---
    def validate_upload(self, data: bytes, file_name: str, mime_type: Optional[str] = None) -> UploadedSignature:
        """アップロードする署名画像を検証する。

        チェックは形式、ファイルサイズ、デコード可否、ピクセル寸法の順に行う。

        Args:
            data (bytes): 画像データ。
            file_name (str): 元のファイル名。
            mime_type (Optional[str]): MIMEタイプ。省略時はファイル名から推定する。

        Returns:
            UploadedSignature: 検証済みの画像情報（pathは未設定）。

        Raises:
            InvalidImageType: PNG/JPEG以外、またはデコードできない場合。
            FileTooLarge: 5MBを超える場合。
            ImageTooLarge: 幅または高さが2000pxを超える場合。
        """
        mime_type = (mime_type or guess_mime_type(file_name) or "").lower()
        if mime_type not in ALLOWED_MIME_TYPES:
            raise InvalidImageType("PNGまたはJPEG形式の画像を選択してください。")
        if len(data) > MAX_UPLOAD_BYTES:
            raise FileTooLarge("ファイルサイズは5MB以下にしてください。")
        try:
            width, height = image_dimensions(data)
        except ValueError as e:
            raise InvalidImageType("画像ファイルを読み込めませんでした。") from e
        if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
            raise ImageTooLarge(f"画像の寸法は {MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION} ピクセル以下にしてください。")
        return UploadedSignature(path="", file_name=file_name, byte_size=len(data), width=width, height=height)

    def upload_bytes(self, data: bytes, file_name: str, mime_type: Optional[str] = None) -> UploadedSignature:
        """署名画像を検証してアップロードし、有効な取得元にする。手書きの内容は破棄される。

        Raises:
            DocumentReadOnlyError: 読み取り専用の場合。
            ValidationError: 検証に失敗した場合。状態は変更されない。
            NetworkError: アップロードに失敗した場合。状態は変更されない。
        """
        self.session.ensure_editable("署名画像をアップロード")
        checked = self.validate_upload(data, file_name, mime_type)
        mime_type = (mime_type or guess_mime_type(file_name) or "image/png").lower()
        if mime_type == "image/jpg":
            mime_type = "image/jpeg"
        path = self.api_service.upload_signature(data, file_name, mime_type)
        uploaded = UploadedSignature(
            path=path, file_name=checked.file_name, byte_size=checked.byte_size,
            width=checked.width, height=checked.height,
        )
        if isinstance(self.source, DrawnSignature):
            self.source.surface.clear()
        self.source = uploaded
        return uploaded

    def upload_file(self, file_path: str) -> UploadedSignature:
        """ローカルの画像ファイルを読み込んでアップロードする。"""
        with open(file_path, 'rb') as f:
            data = f.read()
        return self.upload_bytes(data, os.path.basename(file_path))

    # --- 配置の準備 ---
    def capture(self) -> SignatureCapture:
        """現在の取得元を配置用に確定させる。UIスレッドで呼び出す。

        未アップロードの手書き署名はこの時点でPNGに変換するため、以降の準備処理は
        キャンバスに触れずにワーカースレッドで実行できる。

        Raises:
            DocumentReadOnlyError: 読み取り専用の場合。
            NoSignatureArtifact: 描画もアップロードもされていない場合。
        """
        self.session.ensure_editable("署名を配置")
        source = self.source
        if source is None or (isinstance(source, DrawnSignature) and not source.surface.has_content()):
            raise NoSignatureArtifact("先に署名を描くか、署名画像をアップロードしてください。")
        if isinstance(source, DrawnSignature) and source.uploaded_path is None:
            return SignatureCapture(source=source, png_data=source.surface.to_png_bytes())
        return SignatureCapture(source=source)

    def prepare_artifact(self, capture: Optional[SignatureCapture] = None) -> SignatureArtifact:
        """確定済みの取得元から、配置に使う署名画像を準備する。

        手書きの場合はPNGをアップロードする。その後サーバーから画像を取得して
        寸法を求め、配置サイズを決定する。画像を取得できない場合は既定サイズを使い、
        プレビューなしで配置できる。

        Args:
            capture (Optional[SignatureCapture]): capture() の結果。省略時はその場で確定させる。

        Returns:
            SignatureArtifact: 配置用の署名画像。

        Raises:
            DocumentReadOnlyError: 読み取り専用の場合。
            NoSignatureArtifact: 描画もアップロードもされていない場合。
            NetworkError: 手書き署名のアップロードに失敗した場合。
        """
        if capture is None:
            capture = self.capture()
        else:
            self.session.ensure_editable("署名を配置")
        source = capture.source

        if isinstance(source, DrawnSignature):
            if source.uploaded_path is None:
                source.uploaded_path = self.api_service.upload_signature(
                    capture.png_data, DRAWN_FILE_NAME, "image/png")
            path = source.uploaded_path
        else:
            path = source.path

        image_url: Optional[str] = None
        width, height = DEFAULT_SIGNATURE_WIDTH, DEFAULT_SIGNATURE_HEIGHT
        try:
            data = self.api_service.fetch_signature_image(path)
            width, height = fit_signature_size(*image_dimensions(data))
            image_url = self.assets.acquire(data)
        except (NetworkError, ValueError) as e:
            error = AssetResolutionError(f"署名画像 {path} の寸法を取得できませんでした: {e}")
            logger.warning("{} (using default {}x{})", error, width, height)

        return SignatureArtifact(path=path, image_url=image_url, width=width, height=height, source=source)

    def consume_after_placement(self, source: Optional[SignatureSource] = None) -> None:
        """署名の配置に成功した後に呼び出し、キャンバスと取得元をクリアする。

        配置に使った取得元が既に新しい描画やアップロードで置き換えられている場合は、
        新しい取得元を残す。
        """
        if source is not None and self.source is not source:
            logger.debug("Signature source changed during placement; keeping the new one")
            return
        self.clear()
