from pydantic import BaseModel
from typing import Any, Dict, Optional

# Typed user actions handed to CatalogState.dispatch().


class LoadRequest(BaseModel):
    pass


class CreateRequest(BaseModel):
    draft: Dict[str, Any]


class SubmitFormRequest(BaseModel):
    draft: Dict[str, Any]


class UpdateRequest(BaseModel):
    id: str
    fields: Dict[str, Any]


class DeleteRequest(BaseModel):
    id: str


class ConfirmDeleteRequest(BaseModel):
    pass


class CancelDeleteRequest(BaseModel):
    pass


class SeedRequest(BaseModel):
    pass


class FilterRequest(BaseModel):
    term: str = ""


class SortRequest(BaseModel):
    key: Optional[str] = None


class BeginCellEditRequest(BaseModel):
    id: str
    field: str


class CommitCellEditRequest(BaseModel):
    id: str
    field: str
    value: str


class CancelCellEditRequest(BaseModel):
    id: str
    field: str
