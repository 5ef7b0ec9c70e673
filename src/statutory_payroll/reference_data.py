"""2024 reference catalog (UMA, ISR/subsidy tables, perceptions, IMSS, ISN).

Loaded into the catalog store by ``scripts/seed_catalog.py``. Amounts are
strings so the payloads survive JSON storage without float drift.

Two values change during the year. The UMA is 103.74 until 2024-01-31
and 108.57 from 2024-02-01. The bracketed employment subsidy applies through
2024-04-30; from 2024-05-01 it is a flat 11.82% of the monthly UMA
(390.12 a month) for income up to 9,081.00 a month, prorated by days for
shorter periods.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

EFFECTIVE_2024 = date(2024, 1, 1)
UMA_2024_START = date(2024, 2, 1)
SUBSIDY_DECREE_START = date(2024, 5, 1)


def _brackets(rows: list[tuple[str, str, str]]) -> dict[str, Any]:
    """``(lower, rate, fixed)`` rows to contiguous bracket payload."""
    brackets = []
    for i, (lower, rate, fixed) in enumerate(rows):
        upper = rows[i + 1][0] if i + 1 < len(rows) else None
        brackets.append({"lower": lower, "upper": upper, "rate": rate, "fixed": fixed})
    return {"brackets": brackets}


def _subsidy(rows: list[tuple[str, str]]) -> dict[str, Any]:
    brackets = []
    for i, (lower, amount) in enumerate(rows):
        upper = rows[i + 1][0] if i + 1 < len(rows) else None
        brackets.append({"lower": lower, "upper": upper, "amount": amount})
    return {"brackets": brackets}


ISR_MONTHLY_2024 = _brackets([
    ("0", "0.0192", "0"),
    ("746.05", "0.0640", "14.32"),
    ("6332.06", "0.1088", "371.83"),
    ("11128.02", "0.16", "893.63"),
    ("12935.83", "0.1792", "1182.88"),
    ("15487.72", "0.2136", "1640.18"),
    ("31236.50", "0.2352", "5004.12"),
    ("49233.01", "0.30", "9236.89"),
    ("93993.91", "0.32", "22665.17"),
    ("125325.21", "0.34", "32691.18"),
    ("375975.62", "0.35", "117912.32"),
])

ISR_BIWEEKLY_2024 = _brackets([
    ("0", "0.0192", "0"),
    ("368.11", "0.0640", "7.05"),
    ("3124.36", "0.1088", "183.45"),
    ("5490.76", "0.16", "441.00"),
    ("6382.81", "0.1792", "583.65"),
    ("7641.91", "0.2136", "809.25"),
    ("15412.81", "0.2352", "2469.15"),
    ("24292.66", "0.30", "4557.75"),
    ("46378.51", "0.32", "11183.40"),
    ("61838.11", "0.34", "16130.55"),
    ("185514.31", "0.35", "58180.35"),
])

ISR_WEEKLY_2024 = _brackets([
    ("0", "0.0192", "0"),
    ("171.79", "0.0640", "3.29"),
    ("1458.04", "0.1088", "85.61"),
    ("2562.36", "0.16", "205.80"),
    ("2978.65", "0.1792", "272.37"),
    ("3566.23", "0.2136", "377.65"),
    ("7192.65", "0.2352", "1152.27"),
    ("11336.58", "0.30", "2126.95"),
    ("21643.31", "0.32", "5218.92"),
    ("28857.79", "0.34", "7527.59"),
    ("86573.35", "0.35", "27150.83"),
])

# Bracketed subsidy, 2024-01-01 to 2024-04-30
SUBSIDY_MONTHLY_2024 = _subsidy([
    ("0", "407.02"),
    ("1768.97", "406.83"),
    ("2653.39", "406.62"),
    ("3472.85", "392.77"),
    ("3537.88", "382.46"),
    ("4446.16", "354.23"),
    ("4717.19", "324.87"),
    ("5335.43", "294.63"),
    ("6224.68", "253.54"),
    ("7113.91", "217.61"),
    ("7382.34", "0"),
])

SUBSIDY_BIWEEKLY_2024 = _subsidy([
    ("0", "200.85"),
    ("872.86", "200.70"),
    ("1309.21", "200.70"),
    ("1713.61", "193.80"),
    ("1745.71", "188.70"),
    ("2193.76", "174.75"),
    ("2327.56", "160.35"),
    ("2632.66", "145.35"),
    ("3071.41", "125.10"),
    ("3510.16", "107.40"),
    ("3642.61", "0"),
])

SUBSIDY_WEEKLY_2024 = _subsidy([
    ("0", "93.73"),
    ("407.34", "93.66"),
    ("610.97", "93.66"),
    ("799.69", "90.44"),
    ("814.67", "88.06"),
    ("1023.76", "81.55"),
    ("1086.20", "74.83"),
    ("1228.58", "67.83"),
    ("1433.33", "58.38"),
    ("1638.08", "50.12"),
    ("1699.89", "0"),
])

# Flat subsidy from 2024-05-01
SUBSIDY_MONTHLY_2024_05 = _subsidy([("0", "390.12"), ("9081.01", "0")])
SUBSIDY_BIWEEKLY_2024_05 = _subsidy([("0", "192.49"), ("4480.77", "0")])
SUBSIDY_WEEKLY_2024_05 = _subsidy([("0", "89.83"), ("2091.03", "0")])

PERCEPTIONS_2024 = {
    "items": [
        {"code": "P001", "description": "Sueldos y salarios"},
        {"code": "P002", "description": "Aguinaldo", "exempt_uma_multiple": "30"},
        {"code": "P003", "description": "PTU", "exempt_uma_multiple": "15"},
        {"code": "P005", "description": "Fondo de ahorro", "fully_exempt": True},
        {"code": "P019", "description": "Horas extra"},
        {"code": "P020", "description": "Prima dominical", "exempt_uma_multiple": "1"},
        {"code": "P021", "description": "Prima vacacional", "exempt_uma_multiple": "15"},
        {"code": "P022", "description": "Prima por antiguedad", "exempt_uma_multiple": "90"},
        {"code": "P023", "description": "Pagos por separacion", "exempt_uma_multiple": "90"},
        {"code": "P025", "description": "Indemnizaciones", "exempt_uma_multiple": "90"},
        {"code": "P038", "description": "Otros ingresos por salarios"},
    ]
}

IMSS_2024 = {
    "base_cap_multiple": "25",
    "categories": [
        {
            "code": "EM_FIXED",
            "description": "Enfermedad y maternidad, cuota fija",
            "employer_rate": "0.204",
            "base_kind": "reference_unit",
        },
        {
            "code": "EM_EXCESS",
            "description": "Enfermedad y maternidad, excedente de 3 UMA",
            "employee_rate": "0.004",
            "employer_rate": "0.011",
            "base_kind": "excess",
            "threshold_multiple": "3",
        },
        {
            "code": "EM_CASH",
            "description": "Enfermedad y maternidad, prestaciones en dinero",
            "employee_rate": "0.0025",
            "employer_rate": "0.007",
        },
        {
            "code": "EM_PENSIONERS",
            "description": "Gastos medicos pensionados",
            "employee_rate": "0.00375",
            "employer_rate": "0.0105",
        },
        {
            "code": "IV",
            "description": "Invalidez y vida",
            "employee_rate": "0.00625",
            "employer_rate": "0.0175",
        },
        {
            "code": "RT",
            "description": "Riesgos de trabajo",
            "risk_premium": True,
        },
        {
            "code": "GPS",
            "description": "Guarderias y prestaciones sociales",
            "employer_rate": "0.01",
        },
        {
            "code": "RETIRO",
            "description": "Retiro",
            "employer_rate": "0.02",
        },
        {
            "code": "CEAV",
            "description": "Cesantia en edad avanzada y vejez",
            "employee_rate": "0.01125",
            "employer_rate": "0.0315",
        },
        {
            "code": "INFONAVIT",
            "description": "Vivienda",
            "employer_rate": "0.05",
        },
    ],
    "risk_rates": {
        "I": "0.0054355",
        "II": "0.0113065",
        "III": "0.0259840",
        "IV": "0.0465325",
        "V": "0.0758875",
    },
}

ISN_2024 = {
    "CDMX": "0.03",
    "JAL": "0.02",
    "MEX": "0.03",
    "NLE": "0.03",
}


def catalog_versions_2024() -> list[tuple[str, date, date | None, dict[str, Any]]]:
    """All 2024 catalog versions as ``(key, start, end, payload)``."""
    subsidy_end = SUBSIDY_DECREE_START - timedelta(days=1)
    versions: list[tuple[str, date, date | None, dict[str, Any]]] = [
        ("reference_unit", EFFECTIVE_2024, UMA_2024_START - timedelta(days=1), {"daily_value": "103.74"}),
        ("reference_unit", UMA_2024_START, None, {"daily_value": "108.57"}),
        ("isr_table:monthly", EFFECTIVE_2024, None, ISR_MONTHLY_2024),
        ("isr_table:biweekly", EFFECTIVE_2024, None, ISR_BIWEEKLY_2024),
        ("isr_table:weekly", EFFECTIVE_2024, None, ISR_WEEKLY_2024),
        ("isr_subsidy:monthly", EFFECTIVE_2024, subsidy_end, SUBSIDY_MONTHLY_2024),
        ("isr_subsidy:biweekly", EFFECTIVE_2024, subsidy_end, SUBSIDY_BIWEEKLY_2024),
        ("isr_subsidy:weekly", EFFECTIVE_2024, subsidy_end, SUBSIDY_WEEKLY_2024),
        ("isr_subsidy:monthly", SUBSIDY_DECREE_START, None, SUBSIDY_MONTHLY_2024_05),
        ("isr_subsidy:biweekly", SUBSIDY_DECREE_START, None, SUBSIDY_BIWEEKLY_2024_05),
        ("isr_subsidy:weekly", SUBSIDY_DECREE_START, None, SUBSIDY_WEEKLY_2024_05),
        ("perceptions", EFFECTIVE_2024, None, PERCEPTIONS_2024),
        ("imss_contributions", EFFECTIVE_2024, None, IMSS_2024),
    ]
    for jurisdiction, rate in ISN_2024.items():
        versions.append(
            (
                f"isn:{jurisdiction}",
                EFFECTIVE_2024,
                None,
                {"brackets": [{"lower": "0", "upper": None, "rate": rate, "fixed": "0"}]},
            )
        )
    return versions
