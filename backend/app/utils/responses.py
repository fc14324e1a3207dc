import json
from typing import Any
from fastapi.responses import JSONResponse

class AsciiJSONResponse(JSONResponse):
    """JSONResponse that escapes non-ASCII, so unpaired surrogates still encode"""

    def render(self, content: Any) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=True,
            allow_nan=False,
            indent=None,
            separators=(",", ":"),
        ).encode("ascii")
