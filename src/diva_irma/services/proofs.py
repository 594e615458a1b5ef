"""Verified proofs and attributes per DIVA session."""

import logging
from dataclasses import dataclass

from diva_irma.domain.errors import MissingAttributesError
from diva_irma.domain.sessions import NO_PROOF_STATUS, PROOF_VALID
from diva_irma.services.state import Keyspace, StateStore

_logger = logging.getLogger(__name__)


@dataclass
class ProofService:
    """Stores proofs for DIVA sessions and aggregates their attributes.

    A DIVA session is stored as an ordered list of
    ``{"irma_session_id": ..., "proof": ...}`` entries so that insertion
    order survives stores which reorder JSON object keys.
    """

    store: StateStore

    def add_proof(self, proof: dict[str, object], irma_session_id: str) -> bool:
        """Store a proof under the DIVA session named by its ``jti`` claim.

        Returns False when the proof has no owner or was already stored.
        """
        diva_session_id = proof.get("jti")
        if not isinstance(diva_session_id, str) or not diva_session_id:
            _logger.warning(
                "Proof for IRMA session %s has no DIVA session id", irma_session_id
            )
            return False
        entries = self._entries(diva_session_id)
        if any(entry.get("irma_session_id") == irma_session_id for entry in entries):
            _logger.info(
                "Proof for IRMA session %s already stored for %s",
                irma_session_id,
                diva_session_id,
            )
            return False
        entries.append({"irma_session_id": irma_session_id, "proof": proof})
        self.store.set(Keyspace.DIVA, diva_session_id, entries)
        return True

    def get_proofs(self, diva_session_id: str) -> dict[str, dict[str, object]]:
        """Return proofs keyed by IRMA session id, in insertion order."""
        return {
            str(entry["irma_session_id"]): entry["proof"]
            for entry in self._entries(diva_session_id)
            if isinstance(entry.get("proof"), dict)
        }

    def get_attributes(self, diva_session_id: str) -> dict[str, list[object]]:
        """Merge the disclosed attributes of all VALID proofs."""
        attributes: dict[str, list[object]] = {}
        for proof in self.get_proofs(diva_session_id).values():
            if proof.get("status") != PROOF_VALID:
                continue
            disclosed = proof.get("attributes")
            if not isinstance(disclosed, dict):
                continue
            for name, value in disclosed.items():
                _merge_attribute(attributes, name, value)
        return attributes

    def get_missing_attributes(
        self, diva_session_id: str, required: list[str]
    ) -> list[str]:
        """Return the required attributes not disclosed in this session."""
        existing = self.get_attributes(diva_session_id)
        return [name for name in required if name not in existing]

    def require_attributes(self, diva_session_id: str, required: list[str]) -> None:
        """Raise MissingAttributesError unless every attribute is present."""
        missing = self.get_missing_attributes(diva_session_id, required)
        if missing:
            raise MissingAttributesError(missing, list(required))

    def get_proof_status(self, diva_session_id: str, irma_session_id: str) -> str:
        """Return the status of a stored proof, or NO_PROOF_STATUS."""
        proof = self.get_proofs(diva_session_id).get(irma_session_id)
        if not proof or not proof.get("status"):
            return NO_PROOF_STATUS
        return str(proof["status"])

    def remove_session(self, diva_session_id: str) -> None:
        """Forget every proof of a DIVA session."""
        self.store.delete(Keyspace.DIVA, diva_session_id)

    def _entries(self, diva_session_id: str) -> list[dict[str, object]]:
        raw = self.store.get(Keyspace.DIVA, diva_session_id)
        if not isinstance(raw, list):
            return []
        return [entry for entry in raw if isinstance(entry, dict)]


def _merge_attribute(
    attributes: dict[str, list[object]], name: str, value: object
) -> None:
    """Append a value, keeping earlier values of the same attribute."""
    if name in attributes:
        attributes[name].append(value)
    else:
        attributes[name] = [value]
