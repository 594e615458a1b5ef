"""Per-kind endpoints and JWT options."""

from diva_irma.config import Settings
from diva_irma.domain.sessions import (
    KindProfile,
    SessionKind,
    SigningOptions,
    VerifyOptions,
)


def build_profiles(settings: Settings) -> dict[SessionKind, KindProfile]:
    """Build the lookup table that drives kind-specific behaviour."""
    algorithm = settings.jwt_algorithm
    issuer = settings.jwt_issuer
    return {
        SessionKind.DISCLOSURE: KindProfile(
            kind=SessionKind.DISCLOSURE,
            endpoint=settings.verification_endpoint,
            request_field="sprequest",
            signing=SigningOptions(
                algorithm, issuer, settings.disclosure_request_subject
            ),
            verify=VerifyOptions(algorithm, settings.disclosure_result_subject),
            result_path="getproof",
            validity=settings.session_validity,
            timeout=settings.session_timeout,
        ),
        SessionKind.SIGNATURE: KindProfile(
            kind=SessionKind.SIGNATURE,
            endpoint=settings.signature_endpoint,
            request_field="absrequest",
            signing=SigningOptions(
                algorithm, issuer, settings.signature_request_subject
            ),
            verify=VerifyOptions(algorithm, settings.signature_result_subject),
            result_path="getsignature",
            validity=settings.session_validity,
            timeout=settings.session_timeout,
        ),
        SessionKind.ISSUANCE: KindProfile(
            kind=SessionKind.ISSUANCE,
            endpoint=settings.issue_endpoint,
            request_field="iprequest",
            signing=SigningOptions(algorithm, issuer, settings.issue_request_subject),
            verify=None,
            result_path=None,
            validity=settings.issue_validity,
            timeout=settings.session_timeout,
        ),
    }
