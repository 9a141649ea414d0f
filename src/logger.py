import logging
from logging.handlers import RotatingFileHandler
import os
import sys
import inspect
import traceback
from typing import Iterator, Optional
from contextlib import contextmanager


def setup_logger() -> logging.Logger:
    """
    Настраивает и возвращает логгер с ротацией файлов
    """
    # Директория для логов задается через LOG_DIR
    log_dir = os.getenv("LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger("scratch_win")
    logger.setLevel(logging.INFO)

    # Повторный импорт не должен дублировать обработчики
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Обработчик для вывода в файл с ротацией
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, "scratch_win.log"), maxBytes=10485760, backupCount=5  # 10 MB
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    # Обработчик для вывода в консоль
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


logger = setup_logger()


def log_error(error: Exception, stack_level: int = 1) -> None:
    """
    Логирует ошибку с местом вызова и полным стеком

    Args:
        error: Исключение для логирования
        stack_level: Уровень стека для определения места вызова (по умолчанию 1 - вызывающая функция)
    """
    stack = inspect.stack()
    if stack_level < len(stack):
        frame_info = stack[stack_level]
        error_location = (
            f"Файл: {frame_info.filename}, Функция: {frame_info.function}, "
            f"Строка: {frame_info.lineno}"
        )
    else:
        error_location = "Информация о месте вызова недоступна"

    stack_trace = "".join(traceback.format_tb(error.__traceback__))

    logger.error(
        f"Произошла ошибка: {error!r} | {error_location}\nСтек вызовов:\n{stack_trace}"
    )


@contextmanager
def error_logging_context(context_name: Optional[str] = None) -> Iterator[None]:
    """
    Контекстный менеджер для логирования ошибок в блоке кода

    Args:
        context_name: Название контекста для более информативных логов

    Example:
        ```python
        with error_logging_context("Розыгрыш по заказу AMIT_47"):
            await commit_play(session, order, outcome)
        ```
    """
    try:
        yield
    except Exception as e:
        context_info = f" в контексте '{context_name}'" if context_name else ""
        logger.error(f"Перехвачено исключение{context_info}")
        log_error(e, stack_level=3)
        raise
