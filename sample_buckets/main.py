from __future__ import annotations

import uvicorn
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from sample_buckets.api import sample_buckets
from sample_buckets.api.utils import register_exception_handlers
from sample_buckets.logging_config import configure_logging

configure_logging()

app = FastAPI(
    title="Sample Buckets",
    description="Checks whether sample datasets fit the cluster and installs them",
    version="0.1.0",
)


@app.get("/", include_in_schema=False)
def root() -> RedirectResponse:
    """Redirect root URL to Swagger UI docs."""
    return RedirectResponse(url="/docs")


app.include_router(sample_buckets.router)

register_exception_handlers(app)

if __name__ == "__main__":
    uvicorn.run("sample_buckets.main:app", host="0.0.0.0", port=8001, log_level="info")
