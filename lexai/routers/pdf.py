from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from .. import schemas
from ..errors import ValidationError
from ..models import User
from ..rate_limit import rate_limited_user
from ..services.ingest import ingest_pdf
from ..services.llm import LegalLLM, get_llm
from ..services.vector_store import VectorStore, get_vector_store
from ..storage import Storage, get_storage
from .common import require_owned
from lexai.config import settings
from lexai.utils.logging import logger

router = APIRouter(prefix=f"{settings.api_prefix}/pdf", tags=["pdf"])

PDF_MIME_TYPES = {"application/pdf"}


@router.post(
    "/upload",
    response_model=schemas.UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
def upload_pdf(
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    storage: Storage = Depends(get_storage),
    store: VectorStore = Depends(get_vector_store),
    user: User = Depends(rate_limited_user),
):
    if file is None:
        logger.warning("Upload failed: file missing")
        raise ValidationError("No file uploaded")

    logger.info(
        f"Upload called by user_id={user.id}, username={user.username}, "
        f"filename={file.filename}, content_type={file.content_type}"
    )

    if file.content_type not in PDF_MIME_TYPES:
        raise ValidationError("Only PDF files are allowed")

    # read one byte past the cap so oversized uploads are detected without loading them whole
    contents = file.file.read(settings.max_upload_bytes + 1)
    if len(contents) > settings.max_upload_bytes:
        logger.warning(f"Upload rejected: {file.filename} exceeds {settings.max_upload_bytes} bytes")
        raise ValidationError(
            f"File too large: limit is {settings.max_upload_bytes // (1024 * 1024)}MB"
        )

    document = ingest_pdf(
        storage,
        store,
        user_id=user.id,
        data=contents,
        filename=file.filename or "document.pdf",
        title=title,
    )

    logger.info(f"Document {document.id} uploaded for user_id={user.id}")
    return {"document": schemas.DocumentSummary.model_validate(document)}


@router.get("/documents", response_model=schemas.DocumentListResponse)
def list_documents(
    storage: Storage = Depends(get_storage),
    user: User = Depends(rate_limited_user),
):
    logger.info(f"/pdf/documents called for user_id={user.id}, username={user.username}")

    documents = storage.list_documents_by_user_id(user.id)

    logger.info(f"/pdf/documents returning {len(documents)} documents for user_id={user.id}")
    return {"documents": [schemas.DocumentSummary.model_validate(d) for d in documents]}


@router.delete("/documents/{document_id}", response_model=schemas.MessageResponse)
def delete_document(
    document_id: int,
    storage: Storage = Depends(get_storage),
    store: VectorStore = Depends(get_vector_store),
    user: User = Depends(rate_limited_user),
):
    logger.info(f"Delete document_id={document_id} requested by user_id={user.id}")

    require_owned(storage.get_document(document_id), user, "document", "delete")

    store.delete(document_id, commit=False)
    storage.delete_document(document_id)

    return {"message": "Document deleted successfully"}


@router.post("/ask", response_model=schemas.AskResponse)
def ask_pdf(
    payload: schemas.AskRequest,
    storage: Storage = Depends(get_storage),
    store: VectorStore = Depends(get_vector_store),
    llm: LegalLLM = Depends(get_llm),
    user: User = Depends(rate_limited_user),
):
    logger.info(
        f"/pdf/ask called by user_id={user.id}, documentId={payload.documentId}, "
        f"query='{payload.query[:100]}{'...' if len(payload.query) > 100 else ''}'"
    )

    require_owned(storage.get_document(payload.documentId), user, "document")

    chunks = store.retrieve(payload.documentId, payload.query, k=settings.top_k)

    chat = storage.get_or_create_chat(user.id, payload.documentId)

    storage.create_message(chat.id, payload.query, "user")
    answer = llm.answer_from_context(payload.query, [c.text for c in chunks])
    message = storage.create_message(chat.id, answer, "assistant")

    logger.info(
        f"/pdf/ask response ready for user_id={user.id}: chat_id={chat.id}, "
        f"answer_len={len(answer)}, chunks={len(chunks)}"
    )
    return {"answer": answer, "messageId": message.id, "chatId": chat.id}


@router.get("/chats", response_model=schemas.ChatListResponse)
def list_chats(
    storage: Storage = Depends(get_storage),
    user: User = Depends(rate_limited_user),
):
    chats = storage.list_chats_by_user_id(user.id)
    return {"chats": [schemas.ChatSummary.model_validate(c) for c in chats]}


@router.get("/chats/{chat_id}", response_model=schemas.ChatMessagesResponse)
def get_chat_messages(
    chat_id: int,
    storage: Storage = Depends(get_storage),
    user: User = Depends(rate_limited_user),
):
    logger.info(f"/pdf/chats/{chat_id} called by user_id={user.id}")

    chat = require_owned(storage.get_chat(chat_id), user, "chat")
    messages = storage.list_messages_by_chat_id(chat.id)

    return {"messages": [schemas.ChatMessage.model_validate(m) for m in messages]}
