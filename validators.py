import re
from dataclasses import dataclass

# Base58 alphabet: no 0, O, I or l
BASE58_SIGNATURE_RE = re.compile(r"[1-9A-HJ-NP-Za-km-z]{87,88}")

INVALID_SIGNATURE_TEXT = "Invalid transaction signature"


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: str | None = None


def validate_transaction_signature(text):
    """Format check for a Solana transaction signature (charset and length only)."""
    if not isinstance(text, str):
        return False
    return BASE58_SIGNATURE_RE.fullmatch(text) is not None


def check_signature(text):
    if validate_transaction_signature(text):
        return ValidationResult(ok=True)
    return ValidationResult(ok=False, reason=INVALID_SIGNATURE_TEXT)
