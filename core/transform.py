"""Request body encoding for upstream forwarding."""

import json

BODYLESS_METHODS = frozenset({"GET", "HEAD"})
JSON_CONTENT_TYPE = "application/json"


class RequestTransformer:
    """Decide what body, if any, travels upstream."""

    def encode_body(
        self,
        method: str,
        content_type: str | None,
        raw: bytes,
    ) -> tuple[bytes | None, str | None]:
        """Return (body, content_type) for the upstream request.

        GET and HEAD never carry a body. JSON (or an absent content type) is
        re-encoded compactly; anything else is passed through untouched.
        """
        if method.upper() in BODYLESS_METHODS:
            return None, content_type

        if content_type is None or self._is_json(content_type):
            if not raw.strip():
                return b"{}", content_type or JSON_CONTENT_TYPE
            try:
                parsed = json.loads(raw)
                # NaN/Infinity (e.g. from 1e400) are not JSON; keep the caller's bytes
                encoded = json.dumps(
                    parsed, separators=(",", ":"), ensure_ascii=False, allow_nan=False
                ).encode("utf-8")
            except ValueError:
                # Let the upstream judge malformed JSON
                return raw, content_type or JSON_CONTENT_TYPE
            return encoded, content_type or JSON_CONTENT_TYPE

        return raw, content_type

    @staticmethod
    def _is_json(content_type: str) -> bool:
        media_type = content_type.split(";", 1)[0].strip().lower()
        return media_type == JSON_CONTENT_TYPE or media_type.endswith("+json")
