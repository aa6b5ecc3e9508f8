"""
bikeyard/services/identity.py
-----------------------------
Identity gateway adapter: user accounts, custom role claims and bearer ID
tokens. Accounts live in their own table, separate from the mirrored
`users` profile documents, so the two can drift under partial failure.

Tokens are signed with itsdangerous (the same signer Flask uses for its
session cookie) and expire after ID_TOKEN_MAX_AGE seconds.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy import select
from werkzeug.security import generate_password_hash, check_password_hash

from bikeyard import db
from bikeyard.services.documents import auto_id


TOKEN_SALT = 'bikeyard-id-token'


class IdentityError(Exception):
    code = 'identity/internal-error'


class UserNotFound(IdentityError):
    code = 'identity/user-not-found'


class EmailAlreadyExists(IdentityError):
    code = 'identity/email-already-exists'


class InvalidCredentials(IdentityError):
    code = 'identity/invalid-credentials'


class InvalidIdToken(IdentityError):
    code = 'identity/invalid-id-token'


class Account(db.Model):
    """An identity-provider account."""
    __tablename__ = 'identity_accounts'

    uid           = db.Column(db.String(64), primary_key=True)
    email         = db.Column(db.String(254), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    display_name  = db.Column(db.String(120))
    custom_claims = db.Column(db.JSON, nullable=False, default=dict)
    disabled      = db.Column(db.Boolean, nullable=False, default=False)
    created_at    = db.Column(db.DateTime, nullable=False,
                              default=lambda: datetime.now(timezone.utc))

    def set_password(self, plain_password: str) -> None:
        self.password_hash = generate_password_hash(plain_password)

    def check_password(self, plain_password: str) -> bool:
        return check_password_hash(self.password_hash, plain_password)

    def __repr__(self) -> str:
        return f"<Account {self.email!r}>"


@dataclass
class UserRecord:
    uid: str
    email: str
    display_name: str = None
    custom_claims: dict = field(default_factory=dict)
    disabled: bool = False

    @classmethod
    def from_account(cls, account: Account) -> 'UserRecord':
        return cls(
            uid=account.uid,
            email=account.email,
            display_name=account.display_name,
            custom_claims=dict(account.custom_claims or {}),
            disabled=account.disabled,
        )


class IdentityProvider:

    def __init__(self, secret_key: str, token_max_age: int = 3600, session=None):
        if not secret_key:
            raise ValueError('Identity provider requires a signing secret')
        self._serializer = URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)
        self.token_max_age = token_max_age
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _account(self, uid) -> Account:
        account = self.session.get(Account, uid, populate_existing=True)
        if account is None:
            raise UserNotFound(f'No user record for uid {uid!r}')
        return account

    def _account_by_email(self, email) -> Account:
        account = self.session.execute(
            select(Account)
            .where(Account.email == email.strip().lower())
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if account is None:
            raise UserNotFound(f'No user record for email {email!r}')
        return account

    # ── Accounts ──────────────────────────────────────────────────

    def create_user(self, email: str, password: str, display_name: str = None) -> UserRecord:
        email = email.strip().lower()
        exists = self.session.execute(
            select(Account.uid).where(Account.email == email)
        ).first()
        if exists:
            raise EmailAlreadyExists(f'The email address {email} is already in use')

        account = Account(uid=auto_id(), email=email, display_name=display_name,
                          custom_claims={})
        account.set_password(password)
        self.session.add(account)
        self.session.commit()
        return UserRecord.from_account(account)

    def get_user(self, uid: str) -> UserRecord:
        return UserRecord.from_account(self._account(uid))

    def get_user_by_email(self, email: str) -> UserRecord:
        return UserRecord.from_account(self._account_by_email(email))

    def delete_user(self, uid: str) -> None:
        account = self._account(uid)
        self.session.delete(account)
        self.session.commit()

    def set_custom_user_claims(self, uid: str, claims: dict) -> None:
        account = self._account(uid)
        account.custom_claims = dict(claims or {})
        self.session.commit()

    # ── Tokens ────────────────────────────────────────────────────

    def create_id_token(self, uid: str) -> str:
        account = self._account(uid)
        return self._serializer.dumps({'uid': account.uid, 'email': account.email})

    def sign_in(self, email: str, password: str) -> str:
        """Check a password and return a fresh ID token."""
        try:
            account = self._account_by_email(email)
        except UserNotFound:
            raise InvalidCredentials('Invalid email or password') from None
        if account.disabled or not account.check_password(password):
            raise InvalidCredentials('Invalid email or password')
        return self.create_id_token(account.uid)

    def verify_id_token(self, token: str) -> dict:
        """Return the decoded claims of a valid, unexpired token."""
        try:
            claims = self._serializer.loads(token, max_age=self.token_max_age)
        except SignatureExpired as exc:
            raise InvalidIdToken('ID token has expired') from exc
        except BadSignature as exc:
            raise InvalidIdToken('ID token signature is invalid') from exc
        if not isinstance(claims, dict) or 'uid' not in claims:
            raise InvalidIdToken('ID token is malformed')
        return claims
