import secrets

import bcrypt


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt()
    hashed_password = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed_password.decode('utf-8')


def generate_token(nbytes: int = 32) -> str:
    """Opaque URL-safe token for verification links, resets and session ids."""
    return secrets.token_urlsafe(nbytes)
