from fastapi import FastAPI

from gamebook.config import configure_logging
from gamebook.routes import router


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Gamebook")
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn
app = create_app()
