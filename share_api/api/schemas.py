"""
API 请求/响应 Pydantic 模型（JSON 字段为 camelCase）
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Envelope(BaseModel):
    """统一响应：code=0 成功，1 失败"""

    code: int = 0
    msg: str = "success"
    data: Optional[Any] = None


class BootstrapRequest(CamelModel):
    username: str = Field(..., min_length=1, description="首用户用户名")
    email: str = Field(..., min_length=1, description="首用户邮箱")

    @field_validator("username", "email")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class BootstrapResponse(CamelModel):
    user_id: str
    api_token: str


class BlockReferenceItem(CamelModel):
    block_id: str = Field(..., description="被引用块 ID")
    content: str = Field("", description="引用块预览文本")
    display_text: str = Field("", description="锚文本覆盖")
    ref_count: Optional[int] = Field(None, description="引用次数（原样保存）")


class CreateShareRequest(CamelModel):
    doc_id: str = Field(..., min_length=1, description="笔记文档 ID")
    doc_title: str = Field(..., min_length=1, max_length=255, description="文档标题")
    content: str = Field(..., min_length=1, description="渲染后的文档正文")
    require_password: bool = Field(False, description="是否需要访问密码")
    password: str = Field("", description="访问密码（require_password 时有效）")
    expire_days: int = Field(..., description="有效天数 1-365")
    is_public: bool = Field(False, description="公开标记（仅展示，不参与鉴权）")
    references: Optional[List[BlockReferenceItem]] = Field(None, description="正文中的块引用")
    parent_share_id: Optional[str] = Field(None, description="块级分享所属的文档级分享")

    def references_payload(self) -> Optional[List[Dict[str, Any]]]:
        if not self.references:
            return None
        return [r.model_dump(by_alias=True, exclude_none=True) for r in self.references]


class BatchDeleteRequest(CamelModel):
    share_ids: Optional[List[str]] = Field(None, description="要关闭的分享 ID；为空则关闭全部")
