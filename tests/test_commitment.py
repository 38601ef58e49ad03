from closest_guess.commitment import canonical_payload, generate_commitment, verify_commitment


def test_commitment_verifies_for_same_inputs():
    digest = generate_commitment(42, "salt", "authority")
    assert len(digest) == 64
    assert verify_commitment(digest, 42, "salt", "authority")


def test_commitment_is_deterministic():
    assert generate_commitment(7, "x", "a") == generate_commitment(7, "x", "a")


def test_commitment_rejects_other_identity():
    digest = generate_commitment(42, "salt", "authority")
    assert not verify_commitment(digest, 42, "salt", "front-runner")


def test_commitment_rejects_other_secret_or_number():
    digest = generate_commitment(42, "salt", "authority")
    assert not verify_commitment(digest, 42, "salt2", "authority")
    assert not verify_commitment(digest, 43, "salt", "authority")


def test_commitment_field_boundaries_are_unambiguous():
    assert canonical_payload(1, "a|b", "c") != canonical_payload(1, "a", "b|c")
    assert generate_commitment(1, "a|b", "c") != generate_commitment(1, "a", "b|c")


def test_verify_accepts_uppercase_digest_and_rejects_empty():
    digest = generate_commitment(5, "s", "auth")
    assert verify_commitment(digest.upper(), 5, "s", "auth")
    assert not verify_commitment("", 5, "s", "auth")
    assert not verify_commitment("not-a-digest", 5, "s", "auth")


def test_verify_ignores_surrounding_whitespace():
    digest = generate_commitment(5, "s", "auth")
    assert verify_commitment(f"  {digest.upper()}\n", 5, "s", "auth")
    assert not verify_commitment("   ", 5, "s", "auth")
