"""Payroll Engine package.

Monthly payroll periods per tenant: manual adjustment entries, a lifecycle
state machine (Draft, Locked, Calculated, Approved, Paid) and aggregation of
totals. Organized by feature modules (entries, aggregation, periods, ...)
over repository layers with MySQL and in-memory implementations.
"""
