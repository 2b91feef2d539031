"""
fleetops/api/routers/fuel_purchases.py

Fuel purchase Excel upload and template download endpoints.
"""

from __future__ import annotations

import logging

import psycopg2
from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse, Response

from fleetops.api.dependencies import RepositorySession, get_config, get_repository_session
from fleetops.db.repositories import RepositoryError
from fleetops.excel.reader import EmptySheetError, WorkbookReadError, extract_rows, read_first_sheet
from fleetops.models.config_models import AppConfig
from fleetops.models.vehicle import VehicleLookup
from fleetops.services.fuel_import import run_import
from fleetops.services.template import TEMPLATE_FILENAME, build_template

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/fuel-purchases", tags=["fuel-purchases"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/upload")
def upload_fuel_purchases(
    file: UploadFile | None = File(default=None),
    config: AppConfig = Depends(get_config),
    repository_session: RepositorySession = Depends(get_repository_session),
) -> JSONResponse:
    """
    Import fuel purchases from the first sheet of an uploaded workbook.

    Row-level problems never fail the request; they are listed in "details".
    The database is only touched once the file has been read, and the
    transaction is committed before the response is built.
    """

    if file is None or not file.filename:
        return _error(status.HTTP_400_BAD_REQUEST, "No se ha proporcionado ningún archivo")

    try:
        if not config.fuel_import.accepts(file.filename):
            return _error(status.HTTP_400_BAD_REQUEST, "El archivo debe ser un Excel (.xlsx o .xls)")

        try:
            df = read_first_sheet(file.file.read())
            rows = extract_rows(df, config.fuel_import.columns)
        except EmptySheetError:
            return _error(status.HTTP_400_BAD_REQUEST, "El archivo Excel está vacío")
        except WorkbookReadError as exc:
            logger.warning("upload %s: %s", file.filename, exc)
            return _error(status.HTTP_400_BAD_REQUEST, "No se pudo leer el archivo Excel")

        with repository_session() as repos:
            vehicles = VehicleLookup.from_vehicles(repos.vehicles.list_active())
            report = run_import(rows, vehicles, repos.purchases.create, source=file.filename)
    except (RepositoryError, psycopg2.Error) as exc:
        logger.error("database error processing fuel purchases file %s: %s", file.filename, exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Error de base de datos")
    except Exception:
        logger.exception("error processing fuel purchases file %s", file.filename)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error al procesar el archivo de compras de combustible",
        )
    finally:
        file.file.close()

    return JSONResponse(content=report.to_response())


@router.get("/template")
def download_template(
    repository_session: RepositorySession = Depends(get_repository_session),
) -> Response:
    """
    Excel template with example rows and the list of active vehicles.
    """

    try:
        with repository_session() as repos:
            active = repos.vehicles.list_active()
        content = build_template(active)
    except Exception:
        logger.exception("error generating fuel template")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error al generar la plantilla de combustible",
        )

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )
