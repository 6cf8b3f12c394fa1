import logging
from pathlib import Path
from typing import Dict, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from fibr_gen.report_generator.errors import ReportGenerationError
from fibr_gen.report_generator.generate_report import run_report_generation
from fibr_gen.system_config import sys_config

router = APIRouter(prefix="/api", tags=["reports"])
logger = logging.getLogger(__name__)

# --- Schemas ---

class GenerateRequest(BaseModel):
    config_path: str
    template_dir: Optional[str] = None
    output_dir: Optional[str] = None
    fetcher: Optional[str] = None
    csv_dir: Optional[str] = None
    db_dsn: Optional[str] = None
    params: Dict[str, str] = {}

class GenerateResult(BaseModel):
    status: str
    output_path: str

# --- Endpoints ---

@router.post("/generate", response_model=GenerateResult)
def generate_report(request: GenerateRequest):
    """
    Generate one workbook from a configuration bundle.
    Directories not given in the request fall back to the environment configuration.
    """
    try:
        output_path = run_report_generation(
            config_path=Path(request.config_path),
            template_dir=Path(request.template_dir) if request.template_dir else sys_config.templates_dir,
            output_dir=Path(request.output_dir) if request.output_dir else sys_config.output_dir,
            fetcher_type=request.fetcher or sys_config.fetcher,
            csv_dir=Path(request.csv_dir) if request.csv_dir else sys_config.csv_data_dir,
            db_dsn=request.db_dsn or sys_config.db_dsn,
            params=request.params,
        )
    except ReportGenerationError as e:
        logger.error(f"Report generation rejected: {e}")
        return JSONResponse(status_code=400, content=e.to_dict())
    except Exception as e:
        logger.exception("Report generation crashed")
        raise HTTPException(status_code=500, detail=str(e))

    return GenerateResult(status="success", output_path=str(output_path))
