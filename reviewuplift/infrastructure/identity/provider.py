"""
Identity Provider - Abstraction Layer for Authentication
========================================================

Provides a unified interface for password sign-in and phone verification.
The application only consumes the uid / verified outputs.

USAGE:
    # Local accounts (development, tests)
    provider = LocalIdentityProvider(db)
    user = provider.sign_in("owner@donerhut.com", "secret")

    # Firebase Auth (swap with no changes elsewhere)
    provider = FirebaseIdentityProvider(api_key="your-key")
    handle = provider.send_code("+923001234567")
    provider.confirm_code(handle, "123456")
"""

import hashlib
import logging
import secrets
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

import requests

from ... import ReviewUpliftError

logger = logging.getLogger(__name__)


class IdentityError(ReviewUpliftError):
    """Sign-in, sign-up or verification failed."""
    pass


@dataclass(frozen=True)
class AuthUser:
    """What the identity provider tells us about a signed-in account."""
    uid: str
    email: str
    email_verified: bool = False


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode()).hexdigest()


class IdentityProvider(ABC):
    """
    Abstract base class for identity providers.
    Implement this interface to add new authentication backends.
    """

    @abstractmethod
    def sign_up(self, email: str, password: str) -> AuthUser:
        """Create an account. Raises IdentityError if it cannot be created."""
        ...

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthUser:
        """Check credentials. Raises IdentityError on failure."""
        ...

    @abstractmethod
    def change_password(self, email: str, current_password: str, new_password: str) -> None:
        """Replace a password after checking the current one. Raises IdentityError."""
        ...

    @abstractmethod
    def send_code(self, phone: str) -> str:
        """Send a one-time code to a phone. Returns a confirmation handle."""
        ...

    @abstractmethod
    def confirm_code(self, handle: str, code: str) -> bool:
        """Check a one-time code against its handle."""
        ...

    def delete_account(self, uid: str) -> None:
        """Remove credentials for ``uid`` (optional for hosted providers)."""
        return None

    def update_email(self, uid: str, email: str) -> None:
        """Move the sign-in email of ``uid``. Raises IdentityError if unsupported."""
        raise IdentityError("Email changes are not supported by this identity provider")


class LocalIdentityProvider(IdentityProvider):
    """
    Credentials kept in the application's SQLite database.
    One-time codes are held in memory and written to the log instead of SMS.
    """

    def __init__(self, db, code_length: int = 6):
        self._db = db
        self._code_length = code_length
        self._pending_codes: Dict[str, str] = {}

    def sign_up(self, email: str, password: str) -> AuthUser:
        if not email or not password:
            raise IdentityError("Email and password are required")
        if len(password) < 6:
            raise IdentityError("Password must be at least 6 characters")

        uid = uuid.uuid4().hex
        if not self._db.create_credential(uid, email, hash_password(password)):
            raise IdentityError("Email already registered")

        logger.info(f"Local account created: {uid}")
        return AuthUser(uid=uid, email=email)

    def sign_in(self, email: str, password: str) -> AuthUser:
        credential = self._db.get_credential_by_email(email)
        if not credential:
            raise IdentityError("User not found")

        if not secrets.compare_digest(hash_password(password), credential.password_hash):
            raise IdentityError("Invalid password")

        return AuthUser(uid=credential.uid, email=credential.email,
                        email_verified=credential.email_verified)

    def change_password(self, email: str, current_password: str, new_password: str) -> None:
        auth = self.sign_in(email, current_password)
        if not self._db.update_credential(auth.uid, password_hash=hash_password(new_password)):
            raise IdentityError("Failed to update password")
        logger.info(f"Password changed for {auth.uid}")

    def send_code(self, phone: str) -> str:
        if not phone or not phone.strip():
            raise IdentityError("Phone number is required")

        handle = uuid.uuid4().hex
        code = "".join(secrets.choice("0123456789") for _ in range(self._code_length))
        self._pending_codes[handle] = code
        logger.info(f"Verification code for {phone}: {code}")
        return handle

    def confirm_code(self, handle: str, code: str) -> bool:
        expected = self._pending_codes.get(handle)
        if expected is None or not secrets.compare_digest(expected, (code or "").strip()):
            return False
        del self._pending_codes[handle]
        return True

    def delete_account(self, uid: str) -> None:
        self._db.delete_credential(uid)

    def update_email(self, uid: str, email: str) -> None:
        existing = self._db.get_credential_by_email(email)
        if existing and existing.uid != uid:
            raise IdentityError("Email already registered")
        self._db.update_credential(uid, email=email)

    def peek_code(self, handle: str) -> Optional[str]:
        """Pending code for a handle (local development only)."""
        return self._pending_codes.get(handle)


class FirebaseIdentityProvider(IdentityProvider):
    """
    Firebase Authentication over the Identity Toolkit REST API.

    Every HTTP or API error is converted to IdentityError carrying
    Firebase's error code (e.g. EMAIL_EXISTS, INVALID_PASSWORD).
    """

    def __init__(self, api_key: str, api_url: str = "https://identitytoolkit.googleapis.com/v1",
                 timeout: int = 15):
        self._api_key = api_key
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout

        if not self._api_key:
            logger.warning("No FIREBASE_API_KEY set. Firebase sign-in will fail.")

    def _post(self, endpoint: str, payload: dict) -> dict:
        url = f"{self._api_url}/accounts:{endpoint}"
        try:
            response = requests.post(
                url,
                params={"key": self._api_key},
                json=payload,
                timeout=self._timeout
            )
        except requests.Timeout:
            logger.warning(f"Firebase {endpoint} timed out")
            raise IdentityError("Authentication service timed out")
        except requests.RequestException as e:
            logger.warning(f"Firebase {endpoint} failed: {e}")
            raise IdentityError("Authentication service unavailable")

        data = self._json(response)
        if response.status_code >= 400:
            message = data.get("error", {}).get("message", f"HTTP {response.status_code}")
            logger.info(f"Firebase {endpoint} rejected: {message}")
            raise IdentityError(message)
        return data

    @staticmethod
    def _json(response) -> dict:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def sign_up(self, email: str, password: str) -> AuthUser:
        data = self._post("signUp", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        return AuthUser(uid=data["localId"], email=data.get("email", email))

    def sign_in(self, email: str, password: str) -> AuthUser:
        data = self._post("signInWithPassword", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        return AuthUser(
            uid=data["localId"],
            email=data.get("email", email),
            email_verified=bool(data.get("emailVerified", False)),
        )

    def change_password(self, email: str, current_password: str, new_password: str) -> None:
        data = self._post("signInWithPassword", {
            "email": email,
            "password": current_password,
            "returnSecureToken": True,
        })
        self._post("update", {
            "idToken": data["idToken"],
            "password": new_password,
            "returnSecureToken": False,
        })

    def send_code(self, phone: str) -> str:
        data = self._post("sendVerificationCode", {"phoneNumber": phone})
        return data["sessionInfo"]

    def confirm_code(self, handle: str, code: str) -> bool:
        try:
            data = self._post("signInWithPhoneNumber", {"sessionInfo": handle, "code": code})
        except IdentityError as e:
            logger.info(f"Phone code rejected: {e}")
            return False
        return bool(data.get("localId"))


def get_identity_provider(settings, db) -> IdentityProvider:
    """Pick the identity backend named in settings."""
    identity = settings.identity
    if identity.provider == "firebase":
        return FirebaseIdentityProvider(
            api_key=identity.firebase_api_key,
            api_url=identity.firebase_api_url,
            timeout=identity.timeout_seconds,
        )
    return LocalIdentityProvider(db, code_length=identity.code_length)
