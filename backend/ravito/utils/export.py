"""
Export utilities for CSV and Excel downloads
"""

import csv
from io import BytesIO, StringIO
from typing import Iterable

import pandas as pd

from ravito.core.order_status import get_status_label
from ravito.core.serialization_helpers import format_date_fr
from ravito.schemas.activity import AnnualData

CSV_BOM = "﻿"
CSV_HEADER = ["Date", "N° Commande", "Contrepartie", "Montant HT", "Commission", "Total", "Statut"]


def export_transactions_csv(transactions: Iterable[dict]) -> str:
    """
    Transactions as CSV for spreadsheet tools

    UTF-8 BOM, ';' delimiter, '\\n' line endings, amounts rounded to integers.

    Args:
        transactions: rows with date, order_number, counterparty, amount_ht,
            commission, total and status

    Returns:
        str: CSV content, BOM included
    """
    output = StringIO()
    writer = csv.writer(output, delimiter=";", lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in transactions:
        writer.writerow([
            format_date_fr(row["date"]),
            row["order_number"],
            row.get("counterparty") or "",
            round(row["amount_ht"]),
            round(row["commission"]),
            round(row["total"]),
            get_status_label(row["status"]),
        ])
    return CSV_BOM + output.getvalue()


def _autosize(worksheet) -> None:
    for column in worksheet.columns:
        max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
        worksheet.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)


def export_annual_excel(data: AnnualData, year: int) -> bytes:
    """Annual report workbook: Synthèse, Mensuel, Dépenses and Produits sheets."""
    k = data.kpis
    summary = pd.DataFrame({
        "Indicateur": [
            "Année", "CA total", "CA moyen / mois", "Meilleur mois", "Mois le plus faible",
            "Dépenses totales", "Ratio dépenses (%)", "Marge brute", "Taux de marge (%)",
            "Écart de caisse cumulé", "Mois en excédent", "Mois en déficit",
            "Jours travaillés", "Taux de complétion (%)", "Mois avec données",
        ],
        "Valeur": [
            year, round(k.total_revenue), round(k.avg_monthly_revenue),
            k.best_month.month_name if k.best_month else "",
            k.worst_month.month_name if k.worst_month else "",
            round(k.total_expenses), round(k.expenses_ratio, 1), round(k.gross_margin), round(k.margin_rate, 1),
            round(k.total_cash_difference), k.positive_months, k.negative_months,
            k.total_days_worked, round(k.completion_rate, 1), k.months_with_data,
        ],
    })
    monthly = pd.DataFrame([
        {
            "Mois": m.month_name,
            "CA": round(m.revenue),
            "Dépenses": round(m.expenses),
            "Marge": round(m.margin),
            "Écart de caisse": round(m.cash_difference),
            "Jours travaillés": m.days_worked,
        }
        for m in data.monthly_data
    ])
    expenses = pd.DataFrame(
        [{"Catégorie": e.category, "Total": round(e.total)} for e in data.expenses_by_category],
        columns=["Catégorie", "Total"],
    )
    products = pd.DataFrame(
        [{"Produit": p.name, "Quantité": p.qty_sold, "CA": round(p.revenue)} for p in data.top_products],
        columns=["Produit", "Quantité", "CA"],
    )

    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        for name, frame in (("Synthèse", summary), ("Mensuel", monthly), ("Dépenses", expenses), ("Produits", products)):
            frame.to_excel(writer, index=False, sheet_name=name)
            _autosize(writer.sheets[name])
    return output.getvalue()
