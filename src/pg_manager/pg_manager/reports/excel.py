from __future__ import annotations

import io

import pandas as pd

from .model import Report

# table key -> (sheet name, column headers)
SHEETS = {
    "pgPerformance": (
        "PG Performance",
        {
            "pgName": "PG Name",
            "pgLocation": "PG Location",
            "totalMembers": "Total Members",
            "newMembers": "New Members",
            "totalRooms": "Total Rooms",
            "occupiedRooms": "Occupied Rooms",
            "vacantRooms": "Vacant Rooms",
            "occupancyRate": "Occupancy Rate (%)",
            "revenue": "Revenue (₹)",
            "pendingPayments": "Pending Payments",
            "overduePayments": "Overdue Payments",
            "expenses": "Expenses (₹)",
            "netRevenue": "Net Revenue (₹)",
        },
    ),
    "roomUtilization": (
        "Room Utilization",
        {
            "pgName": "PG Name",
            "roomNo": "Room Number",
            "capacity": "Capacity",
            "occupants": "Occupants",
            "utilizationRate": "Utilization Rate (%)",
            "rent": "Rent (₹)",
            "revenue": "Revenue (₹)",
            "availableSlots": "Available Slots",
        },
    ),
    "paymentAnalytics": (
        "Payment Analytics",
        {
            "pgName": "PG Name",
            "pgLocation": "PG Location",
            "totalPaymentsDue": "Total Payments Due",
            "paymentsReceived": "Payments Received",
            "paymentsApproved": "Payments Approved",
            "paymentsPending": "Payments Pending",
            "paymentsOverdue": "Payments Overdue",
            "amountDue": "Amount Due (₹)",
            "amountReceived": "Amount Received (₹)",
            "collectionEfficiency": "Collection Efficiency (%)",
        },
    ),
    "financialSummary": (
        "Financial Summary",
        {
            "pgName": "PG Name",
            "pgLocation": "PG Location",
            "expectedRevenue": "Expected Revenue (₹)",
            "actualRevenue": "Actual Revenue (₹)",
            "pendingAmount": "Pending Amount (₹)",
            "overdueAmount": "Overdue Amount (₹)",
            "advanceCollected": "Advance Collected (₹)",
            "cashIn": "Cash In (₹)",
            "cashOut": "Cash Out (₹)",
            "netCashFlow": "Net Cash Flow (₹)",
        },
    ),
}


def table_frame(rows: list[dict], headers: dict[str, str]) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=list(headers))
    return df.rename(columns=headers)


def build_workbook(report: Report) -> io.BytesIO:
    """One sheet per report table, written in memory."""
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        for key, (sheet_name, headers) in SHEETS.items():
            table_frame(report.tables.get(key, []), headers).to_excel(writer, index=False, sheet_name=sheet_name)
    output.seek(0)
    return output
