from utils.hashing import verify_password, get_password_hash


def test_password_hashing():
    password = "supersecretpassword1"
    hashed = get_password_hash(password)
    assert hashed != password
    assert hashed.startswith("$2")


def test_password_verification():
    password = "supersecretpassword1"
    hashed = get_password_hash(password)

    assert verify_password(password, hashed) is True
    assert verify_password("wrongpassword1", hashed) is False


def test_long_password_is_truncated_consistently():
    # bcrypt ignores everything past 72 bytes
    long_pass = "a" * 100
    hashed_long = get_password_hash(long_pass)

    assert verify_password(long_pass, hashed_long) is True
    assert verify_password("a" * 72, hashed_long) is True
