"""FastAPI application for the iFood reconciliation dashboard."""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field, field_validator

from dashboard.config.settings import Settings
from dashboard.metrics import (
    analyses_to_rows,
    calculate_metrics,
    export_to_csv,
    generate_result_messages,
    generate_test_data,
    normalize_number,
    validate_form_data,
)
from dashboard.models.domain import AnalysisData, FormInput, User
from dashboard.storage import PersistenceGateway, sync_local_to_remote

settings = Settings()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="iFood Reconciliation API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Singleton gateway, overridable in tests via app.dependency_overrides
_gateway = PersistenceGateway.from_settings(settings)


def get_gateway() -> PersistenceGateway:
    return _gateway


class FormInputBody(BaseModel):
    """Settlement figures; amounts may be numbers or pt-BR text ("50.889,20")."""

    model_config = ConfigDict(populate_by_name=True)

    vbv: float = 0.0
    valores_pagos_cliente: float = Field(default=0.0, alias="valoresPagosCliente")
    vrl: float = 0.0
    vrlj: float = 0.0
    additional_values: dict[str, float] = Field(default_factory=dict, alias="additionalValues")
    periodo: str = ""
    tenant_id: str = Field(default="", alias="tenantId")

    @field_validator("vbv", "valores_pagos_cliente", "vrl", "vrlj", mode="before")
    @classmethod
    def parse_amount(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return normalize_number(v)
        return v

    @field_validator("additional_values", mode="before")
    @classmethod
    def parse_additional(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {k: normalize_number(x) if isinstance(x, str) else x for k, x in v.items()}
        return v

    def to_form(self, tenant_id: Optional[str] = None) -> FormInput:
        return FormInput(
            vbv=self.vbv,
            valores_pagos_cliente=self.valores_pagos_cliente,
            vrl=self.vrl,
            vrlj=self.vrlj,
            additional_values=dict(self.additional_values),
            periodo=self.periodo,
            tenant_id=tenant_id or self.tenant_id,
        )


class NormalizeRequest(BaseModel):
    value: Union[float, str, None] = None


class UserBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    name: str = ""
    tenant_id: str = Field(alias="tenantId")
    role: str = "user"
    created_at: Optional[str] = Field(default=None, alias="createdAt")

    def to_user(self) -> User:
        user = User(
            id=self.id,
            email=self.email,
            name=self.name,
            tenant_id=self.tenant_id,
            role=self.role,
        )
        if self.created_at:
            user.created_at = self.created_at
        return user


class CreateAnalysisRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    form_data: FormInputBody = Field(alias="formData")


# ----------------------------------------------------------------------
# Metrics
# ----------------------------------------------------------------------


@app.post("/api/metrics/normalize")
async def normalize(body: NormalizeRequest):
    """Parse a typed or pasted amount the way the currency input does."""
    return {"value": normalize_number(body.value)}


@app.post("/api/metrics/calculate")
async def calculate(body: FormInputBody):
    metrics = calculate_metrics(body.to_form())
    return {
        "calculatedData": metrics.to_dict(),
        "messages": generate_result_messages(metrics),
    }


@app.post("/api/metrics/validate")
async def validate(body: FormInputBody):
    return validate_form_data(body.to_form()).to_dict()


@app.get("/api/sample")
async def sample(tenant_id: str = "demo-tenant"):
    """Sample form used to pre-fill the dashboard in demos."""
    return generate_test_data(tenant_id).to_dict()


# ----------------------------------------------------------------------
# Session
# ----------------------------------------------------------------------


@app.get("/api/session")
async def current_session(gateway: PersistenceGateway = Depends(get_gateway)):
    user = await gateway.get_current_user()
    return {"user": user.to_dict() if user else None}


@app.post("/api/session")
async def login(body: UserBody, gateway: PersistenceGateway = Depends(get_gateway)):
    user = body.to_user()
    await gateway.save_user(user)
    return {"user": user.to_dict()}


@app.delete("/api/session")
async def logout(gateway: PersistenceGateway = Depends(get_gateway)):
    await gateway.logout()
    return {"status": "ok"}


# ----------------------------------------------------------------------
# Analyses
# ----------------------------------------------------------------------


@app.get("/api/tenants/{tenant_id}/analyses")
async def list_analyses(
    tenant_id: str,
    periodo: Optional[str] = None,
    user_id: Optional[str] = None,
    gateway: PersistenceGateway = Depends(get_gateway),
):
    if user_id:
        analyses = await gateway.get_analyses_by_user(user_id, tenant_id)
        if periodo:
            analyses = [a for a in analyses if periodo in (a.form_data.periodo or "")]
    elif periodo:
        analyses = await gateway.get_analysis_by_period(tenant_id, periodo)
    else:
        analyses = await gateway.load_analyses(tenant_id)
    return [a.to_dict() for a in analyses]


@app.post("/api/tenants/{tenant_id}/analyses")
async def create_analysis(
    tenant_id: str,
    body: CreateAnalysisRequest,
    gateway: PersistenceGateway = Depends(get_gateway),
):
    """Validate, calculate and persist a new analysis."""
    form = body.form_data.to_form(tenant_id=tenant_id)
    validation = validate_form_data(form)
    if not validation.is_valid:
        return JSONResponse(status_code=422, content=validation.to_dict())

    analysis = AnalysisData.create(user_id=body.user_id, tenant_id=tenant_id, form_data=form)
    await gateway.save_analysis(analysis)
    return {"analysis": analysis.to_dict(), "warnings": validation.warnings}


@app.get("/api/tenants/{tenant_id}/analyses/export")
async def export_analyses(tenant_id: str, gateway: PersistenceGateway = Depends(get_gateway)):
    analyses = await gateway.load_analyses(tenant_id)
    csv_text = export_to_csv(analyses_to_rows(analyses))
    return Response(
        content=csv_text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="analises-{tenant_id}.csv"'},
    )


@app.delete("/api/tenants/{tenant_id}/analyses/{analysis_id}")
async def delete_analysis(
    tenant_id: str,
    analysis_id: str,
    gateway: PersistenceGateway = Depends(get_gateway),
):
    await gateway.delete_analysis(analysis_id, tenant_id)
    return {"status": "ok"}


@app.post("/api/tenants/{tenant_id}/sync")
async def sync_tenant(tenant_id: str, gateway: PersistenceGateway = Depends(get_gateway)):
    """Push analyses cached on this machine to Supabase."""
    report = await sync_local_to_remote(gateway, tenant_id)
    return report.to_dict()


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
