from __future__ import annotations
from typing import Optional
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ApiError(BaseModel):
    statusCode: int
    message: str


class TagsRequest(BaseModel):
    username: str


class Commit(BaseModel):
    sha: str
    url: Optional[str] = None
    # GitHub never sends this field; it is always rendered as null
    absent: Optional[bool] = None


class RepoTag(BaseModel):
    name: str
    commit: Optional[Commit] = None
    zipball_url: str
    tarball_url: str
    node_id: str


def api_error_response(err: ApiError) -> JSONResponse:
    return JSONResponse(status_code=err.statusCode, content=err.model_dump())


def fail(code: int, message: str) -> JSONResponse:
    return api_error_response(ApiError(statusCode=code, message=message))
