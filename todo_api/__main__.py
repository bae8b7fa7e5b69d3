import uvicorn

from todo_api.config import settings
from todo_api.main import app, logger


def main() -> None:
    logger.info("server_starting", host=settings.host, port=settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
