"""Parsing of call detail records and per-customer billing reports."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable

MAX_CUSTOMERS = 1000
MIN_FIELDS = 9
REPORT_HEADER = "# Customers Data Base:\n"
_OPERATOR_WIDTH = 19
_INTEGER = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")


def _to_int(text: str) -> int:
    """Read a leading integer the way the record format expects; 0 if none."""
    match = _INTEGER.match(text)
    return int(match.group(1)) if match else 0


class CdrLayout(Enum):
    """Field layout of a CDR line.

    STANDARD: msisdn|operator|-|type|duration|download|upload|-|third-party operator
    LEGACY:   id|operator|-|type|-|-|usage|-|-  (all traffic counts as on-network)
    """

    STANDARD = "standard"
    LEGACY = "legacy"


@dataclass(frozen=True)
class CdrRecord:
    customer_id: str
    operator: str
    call_type: str
    duration: int
    download: int
    upload: int
    third_party_operator: str | None = None

    @property
    def within_operator(self) -> bool:
        return (
            self.third_party_operator is None
            or self.third_party_operator == self.operator
        )


@dataclass
class CustomerBilling:
    customer_id: str
    operator: str
    incoming_voice: int = 0
    outgoing_voice: int = 0
    incoming_sms: int = 0
    outgoing_sms: int = 0
    incoming_voice_other: int = 0
    outgoing_voice_other: int = 0
    incoming_sms_other: int = 0
    outgoing_sms_other: int = 0
    download: int = 0
    upload: int = 0

    def apply(self, record: CdrRecord) -> None:
        """Add one record's usage to these totals."""
        within = record.within_operator
        kind = record.call_type
        if kind == "MTC":
            if within:
                self.incoming_voice += record.duration
            else:
                self.incoming_voice_other += record.duration
        elif kind == "MOC":
            if within:
                self.outgoing_voice += record.duration
            else:
                self.outgoing_voice_other += record.duration
        elif kind == "SMS-MT":
            if within:
                self.incoming_sms += 1
            else:
                self.incoming_sms_other += 1
        elif kind == "SMS-MO":
            if within:
                self.outgoing_sms += 1
            else:
                self.outgoing_sms_other += 1
        elif kind == "GPRS":
            self.download += record.download
            self.upload += record.upload

    def format(self) -> str:
        """Render this customer's block of the billing report."""
        return (
            f"Customer ID: {self.customer_id} ({self.operator})\n"
            "\t* Services within the mobile operator *\n"
            f"\tIncoming voice call durations: {self.incoming_voice}\n"
            f"\tOutgoing voice call durations: {self.outgoing_voice}\n"
            f"\tIncoming SMS messages: {self.incoming_sms}\n"
            f"\tOutgoing SMS messages: {self.outgoing_sms}\n"
            "\t* Services outside the mobile operator *\n"
            f"\tIncoming voice call durations: {self.incoming_voice_other}\n"
            f"\tOutgoing voice call durations: {self.outgoing_voice_other}\n"
            f"\tIncoming SMS messages: {self.incoming_sms_other}\n"
            f"\tOutgoing SMS messages: {self.outgoing_sms_other}\n"
            "\t* Internet use *\n"
            f"\tMB downloaded: {self.download} | MB uploaded: {self.upload}\n\n"
        )


def parse_record(line: str, layout: CdrLayout = CdrLayout.STANDARD) -> CdrRecord | None:
    """Parse one '|'-separated line; return None if it has too few fields.

    Empty fields between consecutive separators are skipped, not counted.
    """
    fields = [field for field in line.rstrip("\r\n").split("|") if field]
    if len(fields) < MIN_FIELDS:
        return None
    if layout is CdrLayout.STANDARD:
        return CdrRecord(
            customer_id=fields[0],
            operator=fields[1],
            call_type=fields[3],
            duration=_to_int(fields[4]),
            download=_to_int(fields[5]),
            upload=_to_int(fields[6]),
            third_party_operator=fields[8],
        )
    usage = _to_int(fields[6])
    return CdrRecord(
        customer_id=str(_to_int(fields[0])),
        operator=fields[1][:_OPERATOR_WIDTH],
        call_type=fields[3],
        duration=usage,
        download=usage,
        upload=usage,
    )


def aggregate(
    lines: Iterable[str],
    layout: CdrLayout = CdrLayout.STANDARD,
    max_customers: int = MAX_CUSTOMERS,
) -> list[CustomerBilling]:
    """Total the records per customer, in order of first appearance.

    Records for new customers beyond max_customers are dropped.
    """
    customers: dict[str, CustomerBilling] = {}
    for line in lines:
        record = parse_record(line, layout)
        if record is None:
            continue
        billing = customers.get(record.customer_id)
        if billing is None:
            if len(customers) >= max_customers:
                continue
            billing = CustomerBilling(record.customer_id, record.operator)
            customers[record.customer_id] = billing
        billing.apply(record)
    return list(customers.values())


def format_report(customers: Iterable[CustomerBilling], header: bool = True) -> str:
    """Render the full billing report text."""
    body = "".join(customer.format() for customer in customers)
    return (REPORT_HEADER if header else "") + body


def process_customer_billing(
    cdr_path: str | Path,
    report_path: str | Path,
    layout: CdrLayout = CdrLayout.STANDARD,
) -> list[CustomerBilling]:
    """Read a CDR file, write the billing report and return the totals."""
    with Path(cdr_path).open(encoding="utf-8") as source:
        customers = aggregate(source, layout)
    report = format_report(customers, header=layout is CdrLayout.STANDARD)
    Path(report_path).write_text(report, encoding="utf-8")
    return customers