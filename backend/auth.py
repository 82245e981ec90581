"""
Account creation through Firebase Authentication, with an in-memory double.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Protocol

import firebase_admin
from firebase_admin import auth as firebase_auth

MIN_PASSWORD_LENGTH = 6


class EmailAlreadyInUseError(Exception):
    """Another account already uses this email."""


class InvalidCredentialsError(Exception):
    """The email is malformed or the password is too weak."""


class AuthClient(Protocol):
    def create_user(self, email: str, password: str) -> str:
        """Creates an email/password account and returns its uid."""
        ...

    def delete_user(self, uid: str) -> None:
        ...


@dataclass
class InMemoryAuthClient:
    """Test double keeping accounts in a dict keyed by email."""

    accounts: dict = field(default_factory=dict)

    def create_user(self, email: str, password: str) -> str:
        if "@" not in email:
            raise InvalidCredentialsError("El formato del correo electrónico no es válido.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidCredentialsError(
                "La contraseña es muy débil. Debe tener al menos 6 caracteres."
            )
        if email in self.accounts:
            raise EmailAlreadyInUseError(
                "Este correo electrónico ya está en uso por otra cuenta."
            )
        uid = uuid.uuid4().hex
        self.accounts[email] = uid
        return uid

    def delete_user(self, uid: str) -> None:
        self.accounts = {e: u for e, u in self.accounts.items() if u != uid}

    def reset(self) -> None:
        self.accounts.clear()


class FirebaseAuthClient:
    """Creates accounts with the Firebase Admin SDK."""

    def __init__(self, project_id: str):
        try:
            self.app = firebase_admin.get_app()
        except ValueError:
            self.app = firebase_admin.initialize_app(options={"projectId": project_id})

    def create_user(self, email: str, password: str) -> str:
        try:
            user = firebase_auth.create_user(email=email, password=password, app=self.app)
        except firebase_auth.EmailAlreadyExistsError as e:
            raise EmailAlreadyInUseError(
                "Este correo electrónico ya está en uso por otra cuenta."
            ) from e
        except ValueError as e:
            # The SDK validates email format and password length locally.
            raise InvalidCredentialsError(str(e)) from e
        return user.uid

    def delete_user(self, uid: str) -> None:
        firebase_auth.delete_user(uid, app=self.app)
