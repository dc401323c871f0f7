import string

from event_showcase_api.app.core.security import CredentialHasher


def test_hash_is_deterministic():
    hasher = CredentialHasher("secret")
    first = hasher.hash("password", "salt")
    assert first == hasher.hash("password", "salt")
    assert first == CredentialHasher("secret").hash("password", "salt")


def test_hash_is_sha512_hex():
    digest = CredentialHasher("secret").hash("password", "salt")
    assert len(digest) == 128
    assert set(digest) <= set(string.hexdigits.lower())


def test_hash_depends_on_secret_password_and_salt():
    base = CredentialHasher("secret").hash("password", "salt")
    assert CredentialHasher("other").hash("password", "salt") != base
    assert CredentialHasher("secret").hash("passw0rd", "salt") != base
    assert CredentialHasher("secret").hash("password", "pepper") != base


def test_verify():
    hasher = CredentialHasher("secret")
    salt = hasher.generate_salt()
    hashed = hasher.hash("password", salt)
    assert hasher.verify("password", salt, hashed)
    assert not hasher.verify("wrong", salt, hashed)


def test_tokens_and_salts_are_random_hex():
    tokens = {CredentialHasher.generate_token() for _ in range(20)}
    salts = {CredentialHasher.generate_salt() for _ in range(20)}
    assert len(tokens) == 20
    assert len(salts) == 20
    for value in tokens | salts:
        # 48 random bytes
        assert len(value) == 96
        int(value, 16)
