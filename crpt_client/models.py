from __future__ import annotations
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Wire names follow the CRPT API (mix of snake_case and camelCase); python names are snake_case.

# ---------- Request: document ----------
class Description(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    participant_inn: Optional[str] = Field(default=None, alias="participantInn")


class Product(BaseModel):
    certificate_document: Optional[str] = None
    certificate_document_date: Optional[date] = None
    certificate_document_number: Optional[str] = None
    owner_inn: Optional[str] = None
    producer_inn: Optional[str] = None
    production_date: Optional[date] = None
    tnved_code: Optional[str] = None
    uit_code: Optional[str] = None
    uitu_code: Optional[str] = None


class Document(BaseModel):
    """
    Document sent to /lk/documents/create. Every field is optional and unset
    fields are left off the wire; fields not modelled here are passed through.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    description: Optional[Description] = None
    doc_id: Optional[str] = None
    doc_status: Optional[str] = None
    doc_type: Optional[str] = None
    import_request: Optional[bool] = Field(default=None, alias="importRequest")
    owner_inn: Optional[str] = None
    participant_inn: Optional[str] = None
    producer_inn: Optional[str] = None
    production_date: Optional[date] = None
    production_type: Optional[str] = None
    products: Optional[List[Product]] = None
    reg_date: Optional[date] = None
    reg_number: Optional[str] = None


# ---------- Responses ----------
class ApiError(BaseModel):
    # some gateways send numeric codes
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    code: Optional[str] = None
    message: Optional[str] = None


class BaseResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    error: Optional[ApiError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DocumentCreatedResponse(BaseResponse):
    # id of the created document
    value: Optional[str] = None
