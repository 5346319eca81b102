import os
from decimal import Decimal

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "payroll_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

OVERTIME_HOURLY_RATE = Decimal("50")
ABSENCE_DAILY_DEDUCTION = Decimal("93.33")
TARDINESS_HOURLY_DEDUCTION = Decimal("0")
EMPLOYER_BURDEN_RATE = Decimal("0")
USE_TAX_TABLE = False
