from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator


def _required(name: str):
    return Field(..., min_length=1, description=f"{name} is required")


class _CamelOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# ---------------------------
# Auth
# ---------------------------
class RegisterRequest(BaseModel):
    username: str = _required("Username")
    password: str = _required("Password")
    confirmPassword: str = _required("Confirm password")
    email: EmailStr
    name: str = _required("Name")

    @field_validator("confirmPassword")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if "password" in info.data and value != info.data["password"]:
            raise ValueError("Passwords don't match")
        return value


class LoginRequest(BaseModel):
    username: str = _required("Username")
    password: str = _required("Password")


class UserOut(_CamelOut):
    id: int
    username: str
    email: str
    name: str


class ProfileOut(UserOut):
    createdAt: datetime = Field(validation_alias="created_at")


class AuthResponse(BaseModel):
    message: str
    user: UserOut
    token: str


class ProfileResponse(BaseModel):
    user: ProfileOut


# ---------------------------
# PDF documents & chats
# ---------------------------
class DocumentMetadata(BaseModel):
    filename: str
    size: int
    chunks: int


class DocumentSummary(_CamelOut):
    id: int
    title: str
    metadata: DocumentMetadata = Field(validation_alias="doc_metadata")
    createdAt: datetime = Field(validation_alias="created_at")


class UploadResponse(BaseModel):
    message: str = "Document uploaded successfully"
    document: DocumentSummary


class DocumentListResponse(BaseModel):
    documents: List[DocumentSummary]


class MessageResponse(BaseModel):
    message: str


class AskRequest(BaseModel):
    documentId: int
    query: str = _required("Query")


class AskResponse(BaseModel):
    answer: str
    messageId: int
    chatId: int


class ChatSummary(_CamelOut):
    id: int
    documentId: int = Field(validation_alias="document_id")
    createdAt: datetime = Field(validation_alias="created_at")


class ChatListResponse(BaseModel):
    chats: List[ChatSummary]


class ChatMessage(_CamelOut):
    id: int
    chatId: int = Field(validation_alias="chat_id")
    content: str
    role: Literal["user", "assistant"]
    createdAt: datetime = Field(validation_alias="created_at")


class ChatMessagesResponse(BaseModel):
    messages: List[ChatMessage]


# ---------------------------
# Arguments
# ---------------------------
class CaseDetails(BaseModel):
    title: str = _required("Case title")
    jurisdiction: str = _required("Jurisdiction")
    type: str = _required("Case type")
    acts: str = _required("Relevant acts/sections")
    facts: str = _required("Case facts")
    side: Literal["prosecution", "defense"]


class ArgumentCreated(_CamelOut):
    id: int
    title: str
    generatedContent: str = Field(validation_alias="generated_content")
    createdAt: datetime = Field(validation_alias="created_at")


class ArgumentSummary(_CamelOut):
    id: int
    title: str
    createdAt: datetime = Field(validation_alias="created_at")


class ArgumentFull(ArgumentCreated):
    userId: int = Field(validation_alias="user_id")
    caseDetails: CaseDetails = Field(validation_alias="case_details")


class ArgumentCreatedResponse(BaseModel):
    message: str = "Legal argument generated successfully"
    argument: ArgumentCreated


class ArgumentListResponse(BaseModel):
    arguments: List[ArgumentSummary]


class ArgumentResponse(BaseModel):
    argument: ArgumentFull


# ---------------------------
# Law search
# ---------------------------
class LawSearchRequest(BaseModel):
    query: str = _required("Search query")
    filters: Optional[List[str]] = None


class ResultSection(BaseModel):
    results: List[dict] = Field(default_factory=list)
    total: int = 0


class StructuredResults(BaseModel):
    acts: ResultSection = Field(default_factory=ResultSection)
    cases: ResultSection = Field(default_factory=ResultSection)
    commentaries: ResultSection = Field(default_factory=ResultSection)


class LawSearchResults(BaseModel):
    response: str
    filters: List[str] = Field(default_factory=list)
    results: StructuredResults = Field(default_factory=StructuredResults)


class LawSearchFull(_CamelOut):
    id: int
    query: str
    results: LawSearchResults
    createdAt: datetime = Field(validation_alias="created_at")


class LawSearchSummary(_CamelOut):
    id: int
    query: str
    createdAt: datetime = Field(validation_alias="created_at")


class LawSearchResponse(BaseModel):
    message: str = "Law search completed"
    search: LawSearchFull


class LawSearchListResponse(BaseModel):
    searches: List[LawSearchSummary]


class LawSearchDetailResponse(BaseModel):
    search: LawSearchFull
