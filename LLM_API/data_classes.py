from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any


# ========== Base Classes ==========

@dataclass
class BaseRequest:
    """全てのリクエストの基底クラス"""
    prompt: str = ""
    system_prompt: Optional[str] = None
    model_name: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """辞書形式に変換（監査ログ用）"""
        return {k: v for k, v in self.__dict__.items() if v is not None}

    def to_messages(self) -> List[Dict[str, str]]:
        """Chat Completions形式のmessages配列"""
        messages: List[Dict[str, str]] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": self.prompt})
        return messages


@dataclass
class BaseResponse:
    """全てのレスポンスの基底クラス"""
    text: str = ""
    model_used: Optional[str] = None
    usage: Optional[Dict[str, int]] = None
    error: Optional[str] = None
    raw_response: Optional[Any] = None

    @property
    def success(self) -> bool:
        """リクエストが成功したか"""
        return self.error is None


# ========== Structured Output ==========

@dataclass
class StructuredOutputRequest(BaseRequest):
    """JSONモードのリクエスト"""
    schema_name: str = "response"
    json_mode: bool = True


@dataclass
class StructuredOutputResponse(BaseResponse):
    """JSONモードのレスポンス"""
    parsed_output: Optional[Dict[str, Any]] = None
    validation_error: Optional[str] = None

    @property
    def success(self) -> bool:
        """パースが成功したか"""
        return self.error is None and self.validation_error is None and self.parsed_output is not None


# ========== Image Generation ==========

@dataclass
class ImageGenerationRequest(BaseRequest):
    """画像生成リクエスト"""
    size: str = "1024x1024"
    quality: str = "hd"
    response_format: str = "url"


@dataclass
class ImageGenerationResponse(BaseResponse):
    """画像生成レスポンス"""
    image_url: Optional[str] = None
    image_bytes: Optional[bytes] = None
    revised_prompt: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None and bool(self.image_bytes)


# ========== Provider Metadata ==========

@dataclass
class ProviderConfig:
    """プロバイダー固有の設定"""
    provider_name: str = ""
    model_name: str = ""
    supports_structured_output: bool = True
    supports_image_generation: bool = True
    max_tokens_limit: Optional[int] = None
    default_image_model: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
