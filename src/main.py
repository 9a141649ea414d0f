import os

import uvicorn

from logger import logger


def main() -> None:
    """
    Точка входа в приложение
    """
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))

    logger.info(f"Запуск сервиса на http://{host}:{port}")
    uvicorn.run("web.main:app", host=host, port=port)


if __name__ == "__main__":
    main()
