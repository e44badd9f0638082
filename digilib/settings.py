# settings.py
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    # Storage
    data_dir: str = os.getenv("LIBRARY_DATA_DIR", ".")
    books_file: str = os.getenv("LIBRARY_BOOKS_FILE", "books.data")
    users_file: str = os.getenv("LIBRARY_USERS_FILE", "users.data")
    history_file: str = os.getenv("LIBRARY_HISTORY_FILE", "history.data")

    # Accounts
    reserved_admin: str = os.getenv("LIBRARY_RESERVED_ADMIN", "admin")
    bcrypt_rounds: int = int(os.getenv("LIBRARY_BCRYPT_ROUNDS", "12"))

    # Display
    date_format: str = os.getenv("LIBRARY_DATE_FORMAT", "%d-%m-%Y %H:%M:%S")
    appearance_mode: str = os.getenv("LIBRARY_APPEARANCE_MODE", "light")
    color_theme: str = os.getenv("LIBRARY_COLOR_THEME", "blue")

    log_level: str = os.getenv("LIBRARY_LOG_LEVEL", "INFO").upper()


settings = Settings()
