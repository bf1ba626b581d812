"""
Form tokens.
URL-safe HMAC-SHA256 of a value, keyed by the session seed, the site
private key and the hash salt, so a token is only valid for one session.
"""

import base64

from cryptography.hazmat.primitives import constant_time, hashes, hmac


def hmac_base64(data, key):
    """HMAC-SHA256 of data as unpadded URL-safe base64."""
    h = hmac.HMAC(key.encode('utf-8'), hashes.SHA256())
    h.update(data.encode('utf-8'))
    return base64.urlsafe_b64encode(h.finalize()).decode('ascii').rstrip('=')


def get_token(value, session_seed, private_key, hash_salt=''):
    return hmac_base64(value, session_seed + private_key + hash_salt)


def valid_token(token, value, session_seed, private_key, hash_salt=''):
    if not token or not session_seed:
        return False
    expected = get_token(value, session_seed, private_key, hash_salt)
    return constant_time.bytes_eq(token.encode('utf-8'), expected.encode('utf-8'))
