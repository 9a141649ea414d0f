from decimal import Decimal


class RedemptionError(Exception):
    """Базовый класс для всех ошибок акции"""

    pass


class OrderNotFoundError(RedemptionError):
    """Заказ с таким номером не найден"""

    def __init__(self, order_ref: str):
        self.order_ref = order_ref
        super().__init__(f"Заказ {order_ref} не найден")


class EmailMismatchError(RedemptionError):
    """Email не совпадает с email заказа"""

    def __init__(self, order_ref: str):
        self.order_ref = order_ref
        super().__init__(f"Email не совпадает с заказом {order_ref}")


class BelowMinimumError(RedemptionError):
    """Сумма заказа меньше минимальной суммы покупки"""

    def __init__(self, order_ref: str, amount: Decimal, minimum: Decimal):
        self.order_ref = order_ref
        self.amount = amount
        self.minimum = minimum
        super().__init__(
            f"Заказ {order_ref}: сумма ₹{amount} меньше минимальной ₹{minimum}"
        )


class AlreadyUsedError(RedemptionError):
    """Заказ уже использован для розыгрыша"""

    def __init__(self, order_ref: str):
        self.order_ref = order_ref
        super().__init__(f"Заказ {order_ref} уже использован")


class InvalidOrderError(RedemptionError):
    """Ошибка при попытке розыгрыша по несуществующему заказу"""

    def __init__(self, order_ref: str):
        self.order_ref = order_ref
        super().__init__(f"Некорректный заказ: {order_ref}")


class ConfigurationError(RedemptionError):
    """Ошибка конфигурации (тиры, веса, суммы)"""

    pass


class PersistenceError(RedemptionError):
    """Ошибка при работе с базой данных"""

    pass


class OrderReferenceExhaustedError(RedemptionError):
    """Не удалось подобрать свободный номер заказа"""

    pass


class InvalidEmailError(RedemptionError):
    """Email не подходит для оформления заказа"""

    pass
