"""
Document store abstraction for Firestore, SQLAlchemy and an in-memory test
implementation.

User documents live in one collection per role (`usuarios_generales`,
`prestadores`, `comercios`); the fiscal profile lives at
`users/{uid}/informacionFiscal/current`.
"""

from __future__ import annotations

import copy
import time
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

import firebase_admin
from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1 import SERVER_TIMESTAMP
from google.cloud.firestore_v1.base_query import FieldFilter
from sqlalchemy import JSON, Column, Float, String, create_engine, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shared.constants import (
    INFORMACION_FISCAL_COLLECTION,
    INFORMACION_FISCAL_DOC,
    PRESTADORES_COLLECTION,
    USERS_COLLECTION,
    collection_for_role,
)


class DocumentNotFoundError(Exception):
    """Raised when a write targets a document that doesn't exist."""


@dataclass
class ProviderFilter:
    """Equality filters for browsing providers."""

    categoria: str
    provincia: str
    localidad: str
    subcategoria: Optional[str] = None

    def equalities(self) -> list[tuple[str, str]]:
        """Field paths and values as queried against the provider documents."""
        fields = [
            ("localidad.provinciaNombre", self.provincia),
            ("localidad.nombre", self.localidad),
            ("categoria.categoria", self.categoria),
        ]
        if self.subcategoria:
            fields.append(("categoria.subcategoria", self.subcategoria))
        return fields


class DbClient(Protocol):
    """Interface for document store access."""

    def save_user(self, uid: str, rol: str, data: dict) -> str:
        ...

    def update_user_pin(self, uid: str, rol: str | None, hashed_pin: str) -> str:
        ...

    def save_perfil_fiscal(self, uid: str, rol: str | None, perfil: dict) -> None:
        ...

    def get_perfil_fiscal(self, uid: str) -> Optional[dict]:
        ...

    def list_providers(self, filtro: ProviderFilter) -> list[dict]:
        ...


def _perfil_fiscal_path(uid: str) -> str:
    return (
        f"{USERS_COLLECTION}/{uid}/{INFORMACION_FISCAL_COLLECTION}/"
        f"{INFORMACION_FISCAL_DOC}"
    )


def _get_field(doc: dict, path: str):
    value = doc
    for key in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _matches(doc: dict, filtro: ProviderFilter) -> bool:
    return all(_get_field(doc, path) == value for path, value in filtro.equalities())


def _provider_result(uid: str, data: dict) -> dict:
    return {"uid": uid, "collection": PRESTADORES_COLLECTION, **data}


class InMemoryDbClient:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        # Keyed by "collection/doc_id" paths, like Firestore.
        self.documents: Dict[str, dict] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.documents.clear()

    def save_user(self, uid: str, rol: str, data: dict) -> str:
        collection = collection_for_role(rol)
        self.documents[f"{collection}/{uid}"] = copy.deepcopy(data)
        return collection

    def update_user_pin(self, uid: str, rol: str | None, hashed_pin: str) -> str:
        collection = collection_for_role(rol)
        doc = self.documents.get(f"{collection}/{uid}")
        if doc is None:
            raise DocumentNotFoundError(
                f"No se encontró el usuario {uid} en {collection}."
            )
        doc["hashedPin"] = hashed_pin
        return collection

    def save_perfil_fiscal(self, uid: str, rol: str | None, perfil: dict) -> None:
        self.documents[_perfil_fiscal_path(uid)] = {
            "perfil": copy.deepcopy(perfil),
            "rol": rol,
            "updatedAt": time.time(),
        }

    def get_perfil_fiscal(self, uid: str) -> Optional[dict]:
        doc = self.documents.get(_perfil_fiscal_path(uid))
        if doc is None:
            return None
        return copy.deepcopy(doc.get("perfil"))

    def list_providers(self, filtro: ProviderFilter) -> list[dict]:
        prefix = f"{PRESTADORES_COLLECTION}/"
        results = []
        for path, data in self.documents.items():
            # Subcollection paths have more segments than "prestadores/{uid}".
            if not path.startswith(prefix) or path.count("/") != 1:
                continue
            if _matches(data, filtro):
                results.append(_provider_result(path[len(prefix):], copy.deepcopy(data)))
        return results


class SqlDbClient:
    """
    SQLAlchemy-backed implementation storing documents as JSON rows. Accepts
    any SQLAlchemy URL (e.g., Postgres, or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _put(self, session: Session, collection: str, doc_id: str, data: dict) -> None:
        path = f"{collection}/{doc_id}"
        row = session.get(DocumentRow, path)
        if row:
            row.data = data
            row.updated_at = time.time()
        else:
            session.add(
                DocumentRow(
                    path=path,
                    collection=collection,
                    data=data,
                    updated_at=time.time(),
                )
            )

    def save_user(self, uid: str, rol: str, data: dict) -> str:
        collection = collection_for_role(rol)
        with self.Session() as session:
            self._put(session, collection, uid, data)
            session.commit()
        return collection

    def update_user_pin(self, uid: str, rol: str | None, hashed_pin: str) -> str:
        collection = collection_for_role(rol)
        with self.Session() as session:
            row = session.get(DocumentRow, f"{collection}/{uid}")
            if not row:
                raise DocumentNotFoundError(
                    f"No se encontró el usuario {uid} en {collection}."
                )
            # Reassign so SQLAlchemy detects the JSON change.
            row.data = {**row.data, "hashedPin": hashed_pin}
            row.updated_at = time.time()
            session.commit()
        return collection

    def save_perfil_fiscal(self, uid: str, rol: str | None, perfil: dict) -> None:
        collection = f"{USERS_COLLECTION}/{uid}/{INFORMACION_FISCAL_COLLECTION}"
        with self.Session() as session:
            self._put(
                session,
                collection,
                INFORMACION_FISCAL_DOC,
                {"perfil": perfil, "rol": rol, "updatedAt": time.time()},
            )
            session.commit()

    def get_perfil_fiscal(self, uid: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(DocumentRow, _perfil_fiscal_path(uid))
            return row.data.get("perfil") if row else None

    def list_providers(self, filtro: ProviderFilter) -> list[dict]:
        with self.Session() as session:
            stmt = select(DocumentRow).where(
                DocumentRow.collection == PRESTADORES_COLLECTION
            )
            rows = session.execute(stmt).scalars().all()
            prefix = f"{PRESTADORES_COLLECTION}/"
            return [
                _provider_result(row.path[len(prefix):], dict(row.data))
                for row in rows
                if _matches(row.data, filtro)
            ]


class FirestoreDbClient:
    """Firestore-backed implementation using the Firebase Admin SDK."""

    def __init__(self, project_id: str):
        try:
            app = firebase_admin.get_app()
        except ValueError:
            app = firebase_admin.initialize_app(options={"projectId": project_id})
        self.client = firestore.client(app)

    def save_user(self, uid: str, rol: str, data: dict) -> str:
        collection = collection_for_role(rol)
        self.client.collection(collection).document(uid).set(data)
        return collection

    def update_user_pin(self, uid: str, rol: str | None, hashed_pin: str) -> str:
        collection = collection_for_role(rol)
        doc_ref = self.client.collection(collection).document(uid)
        try:
            doc_ref.update({"hashedPin": hashed_pin})
        except google_exceptions.NotFound as e:
            raise DocumentNotFoundError(
                f"No se encontró el usuario {uid} en {collection}."
            ) from e
        return collection

    def _perfil_fiscal_ref(self, uid: str):
        return (
            self.client.collection(USERS_COLLECTION)
            .document(uid)
            .collection(INFORMACION_FISCAL_COLLECTION)
            .document(INFORMACION_FISCAL_DOC)
        )

    def save_perfil_fiscal(self, uid: str, rol: str | None, perfil: dict) -> None:
        self._perfil_fiscal_ref(uid).set(
            {"perfil": perfil, "rol": rol, "updatedAt": SERVER_TIMESTAMP}
        )

    def get_perfil_fiscal(self, uid: str) -> Optional[dict]:
        snapshot = self._perfil_fiscal_ref(uid).get()
        if not snapshot.exists:
            return None
        return (snapshot.to_dict() or {}).get("perfil")

    def list_providers(self, filtro: ProviderFilter) -> list[dict]:
        query = self.client.collection(PRESTADORES_COLLECTION)
        for path, value in filtro.equalities():
            query = query.where(filter=FieldFilter(path, "==", value))
        return [
            _provider_result(snapshot.id, snapshot.to_dict())
            for snapshot in query.stream()
        ]


Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "documents"

    path = Column(String, primary_key=True)
    collection = Column(String, nullable=False, index=True)
    data = Column(JSON, nullable=False)
    updated_at = Column(Float, nullable=False)
