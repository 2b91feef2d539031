from __future__ import annotations

import io
from collections.abc import Iterable

import pandas as pd

from ..models.vehicle import Vehicle

"""Downloadable fuel-purchase template workbook.

Sheet 1 holds two example rows using the preferred header spellings, sheet 2
lists the active vehicles whose plates the import will accept.
"""

TEMPLATE_FILENAME = "plantilla_combustible.xlsx"
TEMPLATE_SHEET = "Plantilla Combustible"
VEHICLES_SHEET = "Vehículos Disponibles"

SAMPLE_ROWS = [
    {
        "Fecha (dd/mm/aaaa)": "15/01/2024",
        "Vehículo (Placa)": "ABC-123",
        "Cantidad (Galones)": 25.5,
        "Total ($)": 125000,
        "Proveedor": "Estación de Servicio Central",
    },
    {
        "Fecha (dd/mm/aaaa)": "16/01/2024",
        "Vehículo (Placa)": "XYZ-789",
        "Cantidad (Galones)": 30.0,
        "Total ($)": 150000,
        "Proveedor": "Gasolinera Norte",
    },
]

_TEMPLATE_WIDTHS = {"A": 15, "B": 15, "C": 18, "D": 12, "E": 25}
_VEHICLE_WIDTHS = {"A": 25, "B": 12, "C": 15, "D": 15}


def build_template(vehicles: Iterable[Vehicle]) -> bytes:
    """Return the template workbook as .xlsx bytes."""
    sample = pd.DataFrame(SAMPLE_ROWS)
    vehicle_df = pd.DataFrame(
        [{"ID": v.id, "Placa": v.plate, "Marca": v.brand, "Modelo": v.model} for v in vehicles],
        columns=["ID", "Placa", "Marca", "Modelo"],
    )

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        sample.to_excel(writer, sheet_name=TEMPLATE_SHEET, index=False)
        vehicle_df.to_excel(writer, sheet_name=VEHICLES_SHEET, index=False)
        for sheet, widths in ((TEMPLATE_SHEET, _TEMPLATE_WIDTHS), (VEHICLES_SHEET, _VEHICLE_WIDTHS)):
            ws = writer.sheets[sheet]
            for col, width in widths.items():
                ws.column_dimensions[col].width = width
    return buffer.getvalue()
