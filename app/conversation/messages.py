# app/conversation/messages.py
"""User-facing texts of the bot (Russian, like the upstream fare data)."""

WELCOME = "Привет! Я бот для отслеживания цен на авиабилеты. Нажмите кнопку ниже, чтобы начать поиск."
START_SEARCH_BUTTON = "Начать поиск"

ASK_FROM_CITY = "Введите город отправления:"
ASK_TO_CITY = "Введите город прибытия:"
EMPTY_FROM_CITY = "Пожалуйста, введите город отправления."
EMPTY_TO_CITY = "Пожалуйста, введите город прибытия."

AIRPORTS_NOT_FOUND = "Аэропорты не найдены. Попробуйте ввести другой город."
AIRPORT_LOOKUP_FAILED = "Произошла ошибка при поиске аэропортов. Пожалуйста, попробуйте снова позже."
CHOOSE_FROM_AIRPORT = "Выберите аэропорт отправления:"
CHOOSE_TO_AIRPORT = "Выберите аэропорт прибытия:"
CHOOSE_FROM_LIST = "Пожалуйста, выберите аэропорт из предложенных вариантов."

ASK_DATES_INTRO = "Теперь выберите дату вылета:"
ASK_DATES = "Пожалуйста, выберите даты:"
USE_CALENDAR = "Пожалуйста, выберите даты, используя предоставленный календарь."
NO_DATES_SELECTED = "Вы не выбрали ни одной даты. Пожалуйста, выберите хотя бы одну дату."
AIRPORTS_MISSING = (
    "Информация об аэропортах отправления и прибытия отсутствует. Пожалуйста, начните поиск заново."
)
CALENDAR_UPDATE_FAILED = "Не удалось обновить календарь. Пожалуйста, попробуйте снова."

SEARCH_RESULT = "Результаты поиска на {date}:\n{result}"
SEARCH_FAILED_FOR_DATE = "Не удалось получить данные о билетах на {date}. Попробуйте позже."

FOLLOW_INSTRUCTIONS = "Пожалуйста, следуйте инструкциям бота."
GENERIC_ERROR = "Произошла ошибка. Пожалуйста, попробуйте снова."

# Fare tracker summaries
FARE_INVALID_INPUT = "Некорректные данные для поиска билетов."
FARE_INVALID_DATE = "Некорректный формат даты."
FARE_SERVICE_UNAVAILABLE = "Сервис поиска билетов временно недоступен."
FARE_NOT_FOUND = "Не удалось найти билеты на указанное направление."
FARE_LOOKUP_FAILED = "Не удалось получить данные о билетах. Попробуйте позже."
FARE_SUMMARY = (
    "Самый дешевый билет: {price} руб.\n"
    "Авиакомпания: {airline}\n"
    "Рейс: {flight_number}\n"
    "Дата вылета: {departure_at}"
)
