import os
from decimal import Decimal

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "payroll"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "payroll_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

OVERTIME_HOURLY_RATE = Decimal(os.getenv("OVERTIME_HOURLY_RATE", "0"))
ABSENCE_DAILY_DEDUCTION = Decimal(os.getenv("ABSENCE_DAILY_DEDUCTION", "0"))
TARDINESS_HOURLY_DEDUCTION = Decimal(os.getenv("TARDINESS_HOURLY_DEDUCTION", "0"))
EMPLOYER_BURDEN_RATE = Decimal(os.getenv("EMPLOYER_BURDEN_RATE", "0.20"))
USE_TAX_TABLE = bool(int(os.getenv("USE_TAX_TABLE", "1")))
