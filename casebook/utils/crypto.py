"""
Password hashing.

New hashes are bcrypt (cost 12). ``verify_password`` also understands
werkzeug's ``scrypt:`` / ``pbkdf2:`` format so accounts created by
``werkzeug.security.generate_password_hash`` can still sign in.
"""

import bcrypt
from werkzeug.security import check_password_hash

BCRYPT_ROUNDS = 12
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def hash_password(password: str) -> str:
    digest = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return digest.decode("ascii")


def verify_password(password: str, stored_hash: str) -> bool:
    if password is None or not stored_hash:
        return False
    if stored_hash.startswith(_BCRYPT_PREFIXES):
        return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("ascii"))
    return check_password_hash(stored_hash, password)
