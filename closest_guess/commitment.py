import hashlib
import hmac
import json


def canonical_payload(number: int, secret: str, committer_id: str) -> str:
    # JSON array keeps field boundaries unambiguous ("a|b" + "c" != "a" + "b|c")
    return json.dumps([int(number), secret, committer_id], separators=(",", ":"))


def generate_commitment(number: int, secret: str, committer_id: str) -> str:
    """
    Digest binding the committer to (number, secret).

    The committer's identity is part of the hashed payload, so a reveal replayed
    under another identity never matches.
    """
    payload = canonical_payload(number, secret, committer_id)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def verify_commitment(digest: str, number: int, secret: str, committer_id: str) -> bool:
    if not digest:
        return False
    expected = generate_commitment(number, secret, committer_id)
    return hmac.compare_digest(expected.encode("ascii"), digest.strip().lower().encode("utf-8"))
