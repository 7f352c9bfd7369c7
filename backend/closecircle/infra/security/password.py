"""Password hashing with bcrypt."""
import bcrypt


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Check a password against a stored hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


class BcryptPasswordHasher:
    """Password hasher used by AuthService."""

    def hash(self, password: str) -> str:
        return get_password_hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        return verify_password(password, password_hash)
