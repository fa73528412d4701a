from typing import Literal, Union
from pydantic import BaseModel, Field

class FilePart(BaseModel):
    """A file leaf: relative name plus its full content."""
    kind: Literal["file"] = "file"
    name: str
    content: bytes

class DirectoryPart(BaseModel):
    """A directory marker. Carries no content; children follow as separate parts."""
    kind: Literal["directory"] = "directory"
    name: str

Part = Union[FilePart, DirectoryPart]

class StreamResult(BaseModel):
    """Outcome of a streamed fetch once its session has terminated."""
    request_id: str
    data: bytes = b""
    cancelled: bool = False
    chunks: int = Field(default=0, description="Number of chunks forwarded to on_update")
