from datetime import timedelta
import os
from dotenv import load_dotenv

load_dotenv()
class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///grain_market.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "change-me-in-production")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=24)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Count the payment being recorded toward payment_status before it is confirmed
    OPTIMISTIC_PAYMENT_STATUS = os.environ.get("OPTIMISTIC_PAYMENT_STATUS", "false").lower() == "true"

    SWAGGER = {
        "title": "Grain Market API",
        "uiversion": 3,
    }
