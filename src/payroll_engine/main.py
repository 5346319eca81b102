from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from .aggregation.model import AggregationRates
from .aggregation.mysql_tax_table import load_tax_table
from .common.logging_utils import configure_logging
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig, DatabaseConnection

log = logging.getLogger(__name__)


def rates_from_settings(settings) -> AggregationRates:
    return AggregationRates(
        overtime_hourly=getattr(settings, "OVERTIME_HOURLY_RATE"),
        absence_daily=getattr(settings, "ABSENCE_DAILY_DEDUCTION"),
        tardiness_hourly=getattr(settings, "TARDINESS_HOURLY_DEDUCTION"),
        employer_burden=getattr(settings, "EMPLOYER_BURDEN_RATE"),
    )


def create_container() -> Container:
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = getattr(settings, "DB_CONFIG")

    log.debug(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)
        log.info("schema ready (tables=%s)", len(list_tables(db_config)))

    tax_table = None
    if getattr(settings, "USE_TAX_TABLE", False):
        tax_table = load_tax_table(DatabaseConnection.get_instance(DBConfig.from_dict(db_config)))
        log.info("tax table loaded (A=%s B=%s brackets)", len(tax_table.tax_a), len(tax_table.tax_b))
    return build_container(db_config=db_config, rates=rates_from_settings(settings), tax_table=tax_table)
