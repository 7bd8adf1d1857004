from jose import jwt, ExpiredSignatureError, JWTError as JoseJWTError
from pydantic import ValidationError

from common.config.settings import settings
from common.exceptions.base_exception import UnauthorizedException
from common.logging.logger import log_debug, log_error
from domain.auth.entities.token_entity import TokenPayload
from .errors import JWTError, MissingClaimError, TokenTypeMismatchError


def decode_token(token: str, token_type: str = "access") -> TokenPayload:
    """
    Decode and validate a JWT issued by the identity provider.

    Args:
        token (str): JWT token to decode.
        token_type (str): Expected type of token.

    Returns:
        TokenPayload: Decoded and validated token claims.

    Raises:
        UnauthorizedException: If the token is invalid, expired or of the wrong type.
    """
    try:
        payload = jwt.decode(
            token,
            settings.ACCESS_SECRET,
            algorithms=[settings.ALGORITHM],
            audience=settings.TOKEN_AUDIENCE,
        )

        # Check token type
        actual_type = payload.get("token_type", "access")
        if actual_type != token_type:
            raise TokenTypeMismatchError(expected=token_type, actual=actual_type)

        if not payload.get("jti"):
            raise MissingClaimError("jti")

        token_data = TokenPayload(**payload)
        log_debug("Token decoded", extra={"jti": token_data.jti, "type": token_type})
        return token_data

    except ExpiredSignatureError:
        log_error("Token expired", extra={"token_type": token_type})
        raise UnauthorizedException("Token expired")
    except JoseJWTError as e:
        log_error("Invalid token", extra={"token_type": token_type, "error": str(e)})
        raise UnauthorizedException(f"Invalid token: {str(e)}")
    except JWTError as e:
        log_error("Token rejected", extra={"token_type": token_type, "claim": e.claim, "error": e.message})
        raise UnauthorizedException(e.message)
    except ValidationError as ve:
        log_error("Invalid JWT payload structure", extra={"errors": str(ve.errors())})
        raise UnauthorizedException("Invalid token payload structure")
