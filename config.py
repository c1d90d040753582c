import os
import logging

from dotenv import load_dotenv
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "ecommerce")

JWT_SECRET = os.getenv("JWT_SECRET", "devsecret")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))
PWD_SALT = os.getenv("PWD_SALT", "salt")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

PAGE_SIZE = int(os.getenv("PAGE_SIZE", 12))
ORDERS_PAGE_SIZE = int(os.getenv("ORDERS_PAGE_SIZE", 10))
USERS_PAGE_SIZE = int(os.getenv("USERS_PAGE_SIZE", 10))

TAX_RATE = float(os.getenv("TAX_RATE", 0.0))
SHIPPING_FLAT = float(os.getenv("SHIPPING_FLAT", 0.0))
# 0 means every order ships free
FREE_SHIPPING_THRESHOLD = float(os.getenv("FREE_SHIPPING_THRESHOLD", 0.0))

MAX_CATEGORY_DEPTH = int(os.getenv("MAX_CATEGORY_DEPTH", 1000))
STOCK_CAS_ATTEMPTS = int(os.getenv("STOCK_CAS_ATTEMPTS", 5))


def configure_logging(level: str = LOG_LEVEL) -> None:
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(level)
