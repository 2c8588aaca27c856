import logging
import os
import random
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend import config
from backend.routes import router
from rpg_supreme.errors import GameError

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


async def _game_error_handler(request: Request, exc: GameError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, **exc.to_dict()})


def create_app(data_dir: Path | None = None) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    config.init_config(resolved)
    cfg = config.get_config()

    log_level = os.getenv("LOG_LEVEL") or cfg["log_level"]
    logging.basicConfig(level=log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    seed = os.getenv("RNG_SEED") or cfg["rng_seed"]
    if seed is not None:
        random.seed(int(seed))
        logging.getLogger(__name__).info("Random source seeded with %s", seed)

    app = FastAPI(title="RPG Supreme")
    app.add_exception_handler(GameError, _game_error_handler)
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
