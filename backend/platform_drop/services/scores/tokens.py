import hashlib
import hmac


class TokenCodec:
    """Keyed proof binding a session id to its server-observed issue time.

    Tokens are hex HMAC-SHA256 digests over ``"<session_id>:<issued_at>"``.
    The key never leaves the server.
    """

    def __init__(self, secret: str):
        if not secret:
            raise ValueError('TokenCodec requires a non-empty secret')
        self._key = secret.encode('utf-8')

    def generate(self, session_id: str, issued_at: int) -> str:
        message = f"{session_id}:{int(issued_at)}".encode('utf-8')
        return hmac.new(self._key, message, hashlib.sha256).hexdigest()

    def verify(self, session_id, issued_at, token) -> bool:
        """Constant-time check of ``token``. Malformed input is just ``False``."""
        if not isinstance(token, str) or not isinstance(session_id, str):
            return False
        if isinstance(issued_at, bool) or not isinstance(issued_at, int):
            return False
        expected = self.generate(session_id, issued_at)
        try:
            supplied = token.encode('ascii')
        except UnicodeEncodeError:
            return False
        return hmac.compare_digest(supplied, expected.encode('ascii'))
