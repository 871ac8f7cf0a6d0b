"""Launch the mediator under uvicorn."""
from __future__ import annotations
import os

import uvicorn


def main() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(
        "catpost_mediator.serve.fastapi_app:build_default_app",
        factory=True,
        host=host,
        port=port,
    )


if __name__ == "__main__":
    main()
