import jwt


def token_expiry_ms(token: str) -> int | None:
    """Read the ``exp`` claim of an access token, in epoch milliseconds.

    The signature is not checked; the server remains the authority on whether
    the token is valid. Returns None when the token cannot be decoded or has
    no usable ``exp``.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except jwt.PyJWTError:
        return None
    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    return int(exp * 1000)
