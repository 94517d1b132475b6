from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class AttachedFile(BaseModel):
    name: str = Field(description="Original file name")
    type: str = Field(default="", description="MIME type reported by the browser")
    data: str = Field(description="Data URL for binary/image files, decoded text otherwise")

    @property
    def is_image(self) -> bool:
        return self.type.startswith("image/") or self.data.startswith("data:image/")


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"] = Field(description="Message role: user or assistant")
    content: str = Field(default="", description="Message content")
    timestamp: Optional[datetime] = Field(default=None, description="When the message was sent")
    file: Optional[AttachedFile] = Field(default=None, description="Attachment carried by the message")
    image: Optional[str] = Field(default=None, description="Image data URL carried by the message")


class ChatRequest(BaseModel):
    message: str = Field(default="", description="New user message")
    messages: List[ChatMessage] = Field(default_factory=list, description="Chat conversation history")
    wallet_address: Optional[str] = Field(default=None, description="Connected wallet address, if any")
    file: Optional[AttachedFile] = Field(default=None, description="Optional file attachment")
    image: Optional[str] = Field(default=None, description="Optional image data URL")

    @property
    def has_input(self) -> bool:
        return bool(self.message.strip() or self.file or self.image)


class ContractRequest(BaseModel):
    address: str = Field(description="Contract address to inspect")
    chain: str = Field(default="ethereum", description="Network the contract lives on")
    action: Literal["validate", "getMetadata"] = Field(default="validate", description="Lookup to perform")


class RenderRequest(BaseModel):
    text: str = Field(description="Assistant reply to segment for display")
