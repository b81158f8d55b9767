"""Run the API with uvicorn: `python -m users_crud`."""

import uvicorn

from users_crud.config.settings import get_settings
from users_crud.main import create_app


def main() -> None:
    settings = get_settings()
    # log_config=None: keep the dictConfig applied in the app lifespan
    uvicorn.run(create_app(settings), host=settings.SERVER_HOST, port=settings.SERVER_PORT, log_config=None)


if __name__ == "__main__":
    main()
