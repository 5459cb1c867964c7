# lexai/storage.py

from abc import ABC, abstractmethod
from typing import List, Optional

from fastapi import Depends
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .db import get_db
from .errors import ConflictError
from .models import Argument, Chat, Document, LawSearch, Message, User
from lexai.utils.logging import logger


class Storage(ABC):
    """
    Per-entity CRUD used by the routers.

    get_* returns None when the row is absent, delete_* returns whether a row
    was removed. Ids and creation timestamps are always assigned by the store.
    """

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...

    # Users
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(self, username: str, password_hash: str, email: str, name: str) -> User: ...

    # Documents
    @abstractmethod
    def get_document(self, document_id: int) -> Optional[Document]: ...

    @abstractmethod
    def list_documents_by_user_id(self, user_id: int) -> List[Document]: ...

    @abstractmethod
    def create_document(
        self, user_id: int, title: str, content: str, metadata: dict, commit: bool = True
    ) -> Document: ...

    @abstractmethod
    def delete_document(self, document_id: int) -> bool: ...

    # Chats
    @abstractmethod
    def get_chat(self, chat_id: int) -> Optional[Chat]: ...

    @abstractmethod
    def list_chats_by_user_id(self, user_id: int) -> List[Chat]: ...

    @abstractmethod
    def list_chats_by_document_id(self, document_id: int) -> List[Chat]: ...

    @abstractmethod
    def create_chat(self, user_id: int, document_id: int) -> Chat: ...

    @abstractmethod
    def get_or_create_chat(self, user_id: int, document_id: int) -> Chat:
        """Return the document's chat, creating it if none exists yet."""

    # Messages
    @abstractmethod
    def list_messages_by_chat_id(self, chat_id: int) -> List[Message]: ...

    @abstractmethod
    def create_message(self, chat_id: int, content: str, role: str) -> Message: ...

    # Arguments
    @abstractmethod
    def get_argument(self, argument_id: int) -> Optional[Argument]: ...

    @abstractmethod
    def list_arguments_by_user_id(self, user_id: int) -> List[Argument]: ...

    @abstractmethod
    def create_argument(
        self, user_id: int, title: str, case_details: dict, generated_content: str
    ) -> Argument: ...

    # Law searches
    @abstractmethod
    def get_law_search(self, search_id: int) -> Optional[LawSearch]: ...

    @abstractmethod
    def list_law_searches_by_user_id(self, user_id: int) -> List[LawSearch]: ...

    @abstractmethod
    def create_law_search(self, user_id: int, query: str, results: dict) -> LawSearch: ...


class SqlStorage(Storage):
    def __init__(self, db: Session):
        self.db = db
        logger.debug("SqlStorage instance created")

    def _save(self, obj, commit: bool = True):
        self.db.add(obj)
        if commit:
            self.db.commit()
            self.db.refresh(obj)
        else:
            self.db.flush()
        return obj

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    # ---------------------------
    # Users
    # ---------------------------
    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.scalar(select(User).where(User.username == username))

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.scalar(select(User).where(User.email == email))

    def create_user(self, username: str, password_hash: str, email: str, name: str) -> User:
        logger.info(f"Creating user username={username}")
        try:
            return self._save(
                User(username=username, password_hash=password_hash, email=email, name=name)
            )
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(f"Duplicate user username={username}: {exc.orig}")
            raise ConflictError("Username or email already exists") from exc

    # ---------------------------
    # Documents
    # ---------------------------
    def get_document(self, document_id: int) -> Optional[Document]:
        return self.db.get(Document, document_id)

    def list_documents_by_user_id(self, user_id: int) -> List[Document]:
        return list(self.db.scalars(select(Document).where(Document.user_id == user_id)))

    def create_document(
        self, user_id: int, title: str, content: str, metadata: dict, commit: bool = True
    ) -> Document:
        logger.info(f"Creating document user_id={user_id}, title={title}, commit={commit}")
        return self._save(
            Document(user_id=user_id, title=title, content=content, doc_metadata=metadata),
            commit=commit,
        )

    def delete_document(self, document_id: int) -> bool:
        """
        Remove a document together with its chats and messages.

        The chunk index is owned by VectorStore; callers drop it in the same
        session before calling this so both go out in one commit.
        """
        document = self.db.get(Document, document_id)
        if document is None:
            logger.info(f"delete_document: document_id={document_id} not present")
            return False

        try:
            chat_ids = select(Chat.id).where(Chat.document_id == document_id)
            self.db.execute(delete(Message).where(Message.chat_id.in_(chat_ids)))
            self.db.execute(delete(Chat).where(Chat.document_id == document_id))
            self.db.delete(document)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Deleted document_id={document_id} with chats and messages")
        return True

    # ---------------------------
    # Chats & messages
    # ---------------------------
    def get_chat(self, chat_id: int) -> Optional[Chat]:
        return self.db.get(Chat, chat_id)

    def list_chats_by_user_id(self, user_id: int) -> List[Chat]:
        return list(self.db.scalars(select(Chat).where(Chat.user_id == user_id)))

    def list_chats_by_document_id(self, document_id: int) -> List[Chat]:
        return list(
            self.db.scalars(
                select(Chat).where(Chat.document_id == document_id).order_by(Chat.id)
            )
        )

    def create_chat(self, user_id: int, document_id: int) -> Chat:
        logger.info(f"Creating chat user_id={user_id}, document_id={document_id}")
        try:
            return self._save(Chat(user_id=user_id, document_id=document_id))
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(f"Chat already exists for document_id={document_id}: {exc.orig}")
            raise ConflictError("Chat already exists for this document") from exc

    def get_or_create_chat(self, user_id: int, document_id: int) -> Chat:
        existing = self.list_chats_by_document_id(document_id)
        if existing:
            return existing[0]
        try:
            return self.create_chat(user_id, document_id)
        except ConflictError:
            # a concurrent request inserted it between the lookup and the insert
            chat = self.db.scalar(select(Chat).where(Chat.document_id == document_id))
            if chat is None:
                raise
            logger.info(f"Reusing concurrently created chat_id={chat.id}")
            return chat

    def list_messages_by_chat_id(self, chat_id: int) -> List[Message]:
        # ids are monotonic, so they break ties between equal timestamps
        return list(
            self.db.scalars(
                select(Message)
                .where(Message.chat_id == chat_id)
                .order_by(Message.created_at, Message.id)
            )
        )

    def create_message(self, chat_id: int, content: str, role: str) -> Message:
        logger.debug(f"Appending {role} message to chat_id={chat_id}")
        return self._save(Message(chat_id=chat_id, content=content, role=role))

    # ---------------------------
    # Arguments
    # ---------------------------
    def get_argument(self, argument_id: int) -> Optional[Argument]:
        return self.db.get(Argument, argument_id)

    def list_arguments_by_user_id(self, user_id: int) -> List[Argument]:
        return list(self.db.scalars(select(Argument).where(Argument.user_id == user_id)))

    def create_argument(
        self, user_id: int, title: str, case_details: dict, generated_content: str
    ) -> Argument:
        logger.info(f"Creating argument user_id={user_id}, title={title}")
        return self._save(
            Argument(
                user_id=user_id,
                title=title,
                case_details=case_details,
                generated_content=generated_content,
            )
        )

    # ---------------------------
    # Law searches
    # ---------------------------
    def get_law_search(self, search_id: int) -> Optional[LawSearch]:
        return self.db.get(LawSearch, search_id)

    def list_law_searches_by_user_id(self, user_id: int) -> List[LawSearch]:
        return list(self.db.scalars(select(LawSearch).where(LawSearch.user_id == user_id)))

    def create_law_search(self, user_id: int, query: str, results: dict) -> LawSearch:
        logger.info(f"Creating law search user_id={user_id}")
        return self._save(LawSearch(user_id=user_id, query=query, results=results))


def get_storage(db: Session = Depends(get_db)) -> Storage:
    return SqlStorage(db)
