# File: common/security/jwt/errors.py


class JWTError(Exception):
    """A token that verified cryptographically but failed a claim check."""

    def __init__(self, message: str, claim: str):
        self.message = message
        self.claim = claim
        super().__init__(message)


class TokenTypeMismatchError(JWTError):
    def __init__(self, expected: str, actual: str):
        super().__init__(f"Token type mismatch: expected '{expected}', got '{actual}'", claim="token_type")


class MissingClaimError(JWTError):
    def __init__(self, claim: str):
        super().__init__(f"Token missing required '{claim}' claim", claim=claim)
