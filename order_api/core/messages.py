"""
User-facing message strings.

English is the complete table. Other locales only override the strings
they translate; anything missing falls back to English.
"""

from order_api.core.config import Locale

_MESSAGES: dict[Locale, dict[str, str]] = {
    Locale.EN: {
        "dishes_count": "The dishes list must contain between 1 and 10 items",
        "invalid_request": "Request body must be a JSON object",
        "order_created": "Order created successfully",
        "order_create_failed": "Failed to create order",
        "orders_fetch_failed": "Failed to fetch orders",
        "order_confirm_failed": "Failed to confirm order",
        "menu_fetch_failed": "Failed to fetch menu",
        "no_token": "Unauthorized: No token provided",
        "invalid_token": "Unauthorized: Invalid token",
        "internal_error": "An unexpected error occurred",
    },
    Locale.UK: {
        "dishes_count": "Список страв має містити від 1 до 10 елементів",
        "invalid_request": "Тіло запиту має бути JSON-об'єктом",
        "order_created": "Замовлення створено успішно",
        "order_create_failed": "Помилка створення замовлення",
    },
}


def get_message(key: str, locale: Locale = Locale.EN) -> str:
    """
    Look up a message for the given locale.

    Raises:
        KeyError: If the key is unknown in every table
    """
    table = _MESSAGES.get(locale, {})
    if key in table:
        return table[key]
    return _MESSAGES[Locale.EN][key]
