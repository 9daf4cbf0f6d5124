from csrf import generate_csrf_token, validate_csrf_token


def test_token_round_trip_is_bound_to_session() -> None:
    token = generate_csrf_token(1, "session-a")

    assert validate_csrf_token(token, 1, "session-a")
    assert not validate_csrf_token(token, 1, "session-b")
    assert not validate_csrf_token(token, 2, "session-a")


def test_missing_or_tampered_token_is_rejected() -> None:
    token = generate_csrf_token()

    assert validate_csrf_token(token)
    assert not validate_csrf_token(None)
    assert not validate_csrf_token("")
    assert not validate_csrf_token(token[:-2] + "xx")
