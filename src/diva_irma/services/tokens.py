"""JWT signing of session requests and verification of session results."""

import json
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime

import jwt

from diva_irma.domain.errors import ParseError, VerificationError
from diva_irma.domain.sessions import KindProfile, VerifyOptions

MAX_SAFE_INTEGER = 2**53 - 1
_MAX_SAFE_DIGITS = len(str(MAX_SAFE_INTEGER))

# Either a complete JSON string literal or a JSON number.
_JSON_TOKEN = re.compile(r'"(?:[^"\\]|\\.)*"|-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?')

_logger = logging.getLogger(__name__)


@dataclass
class TokenCodec:
    """Signs outgoing session requests and verifies IRMA API server results.

    Requests are signed with the relying party's private key; results are
    checked against the API server's public key. Options that differ per
    session kind come from a ``KindProfile``.
    """

    signing_key: str
    public_key: str

    def sign_request(self, profile: KindProfile, body: dict[str, object]) -> str:
        """Wrap a request body in a signed JWT for the profile's kind."""
        claims = {
            profile.request_field: body,
            "iss": profile.signing.issuer,
            "sub": profile.signing.subject,
            "iat": int(datetime.now(tz=UTC).timestamp()),
        }
        return jwt.encode(
            claims, self.signing_key, algorithm=profile.signing.algorithm
        )

    def verify(self, token: str, options: VerifyOptions) -> dict[str, object]:
        """Verify a result JWT and return its claims."""
        try:
            claims = jwt.decode(
                token,
                self.public_key,
                algorithms=[options.algorithm],
                options={"verify_aud": False},
            )
        except jwt.PyJWTError as exc:
            raise VerificationError(f"Invalid result token: {exc}") from exc
        _check_subject(claims, options)
        return claims

    def verify_signature(self, token: str, options: VerifyOptions) -> dict[str, object]:
        """Verify a signature JWT without losing precision on large integers.

        The JWS signature is checked first; the payload is then parsed with
        ``parse_signature_payload`` instead of a plain JSON decoder.
        """
        try:
            decoded = jwt.PyJWS().decode_complete(
                token, self.public_key, algorithms=[options.algorithm]
            )
        except jwt.PyJWTError as exc:
            raise VerificationError(f"Invalid signature token: {exc}") from exc
        try:
            text = decoded["payload"].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError("Signature payload is not UTF-8") from exc
        claims = parse_signature_payload(text)
        _check_subject(claims, options)
        _check_expiry(claims)
        return claims


def quote_large_integers(text: str) -> str:
    """Quote integer literals that a double cannot represent exactly."""

    def _quote(match: re.Match[str]) -> str:
        literal = match.group(0)
        if literal.startswith('"') or any(char in literal for char in ".eE"):
            return literal
        digits = literal.lstrip("-")
        # Compare by length first; int() refuses very long literals.
        if len(digits) > _MAX_SAFE_DIGITS or int(digits) > MAX_SAFE_INTEGER:
            return f'"{literal}"'
        return literal

    return _JSON_TOKEN.sub(_quote, text)


def parse_signature_payload(text: str) -> dict[str, object]:
    """Parse a signature payload, keeping large integers as decimal strings."""
    try:
        payload = json.loads(quote_large_integers(text))
    except json.JSONDecodeError as exc:
        raise ParseError(f"Malformed signature payload: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise ParseError("Signature payload is not a JSON object")
    return payload


def _check_subject(claims: dict[str, object], options: VerifyOptions) -> None:
    subject = claims.get("sub")
    if subject != options.subject:
        _logger.warning(
            "Result token subject mismatch: expected=%s got=%s",
            options.subject,
            subject,
        )
        raise VerificationError(
            f"Unexpected token subject {subject!r}, expected {options.subject!r}"
        )


def _check_expiry(claims: dict[str, object]) -> None:
    expires_at = claims.get("exp")
    if expires_at is None:
        return
    try:
        expiry = int(expires_at)
    except (TypeError, ValueError) as exc:
        raise VerificationError("Expiration time claim must be an integer") from exc
    if expiry <= int(datetime.now(tz=UTC).timestamp()):
        raise VerificationError("Signature token has expired")
