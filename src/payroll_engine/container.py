from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .aggregation.aggregator import PeriodAggregator
from .aggregation.calculator.standard_calculator import StandardEmployeeCalculator
from .aggregation.compensation import CompensationSource, MySQLCompensationSource
from .aggregation.model import AggregationRates
from .aggregation.taxes import TaxTable
from .authorization.policy import PeriodAuthorizer, RoleBasedAuthorizer
from .common.locks import KeyedLocks
from .database.connection import DBConfig, DatabaseConnection
from .database.memory_repository import InMemoryPayrollRepository
from .entries.mysql_entry_repository import MySQLEntryRepository
from .entries.repository import EntryRepository
from .identity.directory import EmployeeDirectory, InMemoryEmployeeDirectory
from .identity.mysql_employee_directory import MySQLEmployeeDirectory
from .periods.mysql_period_repository import MySQLPeriodRepository
from .periods.repository import PeriodRepository
from .periods.service import PayrollPeriodService
from .slips.mysql_slip_repository import MySQLSlipRepository
from .slips.repository import SlipRepository
from .slips.service import PayrollSlipService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    periods_repo: PeriodRepository
    entries_repo: EntryRepository
    slips_repo: SlipRepository
    directory: EmployeeDirectory
    authorizer: PeriodAuthorizer
    compensation: Optional[CompensationSource]
    aggregator: PeriodAggregator

    period_service: PayrollPeriodService
    slip_service: PayrollSlipService


def build_aggregator(
    rates: Optional[AggregationRates] = None,
    *,
    tax_table: Optional[TaxTable] = None,
) -> PeriodAggregator:
    return PeriodAggregator(StandardEmployeeCalculator(rates, tax_table=tax_table))


def build_container(
    *,
    db_config: Union[dict, DBConfig],
    rates: Optional[AggregationRates] = None,
    tax_table: Optional[TaxTable] = None,
    authorizer: Optional[PeriodAuthorizer] = None,
) -> Container:
    config = db_config if isinstance(db_config, DBConfig) else DBConfig.from_dict(db_config)
    conn = DatabaseConnection.get_instance(config)

    periods_repo = MySQLPeriodRepository(conn)
    entries_repo = MySQLEntryRepository(conn)
    slips_repo = MySQLSlipRepository(conn)
    directory = MySQLEmployeeDirectory(conn)
    compensation = MySQLCompensationSource(conn)
    authorizer = authorizer or RoleBasedAuthorizer()
    aggregator = build_aggregator(rates, tax_table=tax_table)
    locks = KeyedLocks()

    period_service = PayrollPeriodService(
        periods_repo,
        entries_repo,
        directory,
        authorizer,
        aggregator=aggregator,
        compensation=compensation,
        locks=locks,
    )
    slip_service = PayrollSlipService(periods_repo, slips_repo, authorizer, locks=locks)

    return Container(
        conn=conn,
        periods_repo=periods_repo,
        entries_repo=entries_repo,
        slips_repo=slips_repo,
        directory=directory,
        authorizer=authorizer,
        compensation=compensation,
        aggregator=aggregator,
        period_service=period_service,
        slip_service=slip_service,
    )


def build_memory_container(
    *,
    directory: Optional[EmployeeDirectory] = None,
    compensation: Optional[CompensationSource] = None,
    rates: Optional[AggregationRates] = None,
    tax_table: Optional[TaxTable] = None,
    authorizer: Optional[PeriodAuthorizer] = None,
) -> Container:
    """Same wiring over in-memory storage; used by tests and examples."""

    repo = InMemoryPayrollRepository()
    directory = directory or InMemoryEmployeeDirectory()
    authorizer = authorizer or RoleBasedAuthorizer()
    aggregator = build_aggregator(rates, tax_table=tax_table)
    locks = KeyedLocks()

    period_service = PayrollPeriodService(
        repo,
        repo,
        directory,
        authorizer,
        aggregator=aggregator,
        compensation=compensation,
        locks=locks,
    )
    slip_service = PayrollSlipService(repo, repo, authorizer, locks=locks)

    return Container(
        conn=None,
        periods_repo=repo,
        entries_repo=repo,
        slips_repo=repo,
        directory=directory,
        authorizer=authorizer,
        compensation=compensation,
        aggregator=aggregator,
        period_service=period_service,
        slip_service=slip_service,
    )
