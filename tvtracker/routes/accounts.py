from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..services.user_account_svc import (
    authenticate,
    create_user_account,
    delete_user_account,
    login,
    refresh_token,
)

router = APIRouter()


class AccountCreate(BaseModel):
    username: str
    password: str
    email: str | None = None
    birth_date: datetime | None = None


class Credentials(BaseModel):
    username: str
    password: str


class TokenBody(BaseModel):
    username: str
    token: str


def _session(account) -> dict:
    return {**account.public_dict(), "token": account.token}


@router.post("/api/account/create", status_code=201)
def api_account_create(body: AccountCreate):
    try:
        account = create_user_account(body.username, body.password, body.email, body.birth_date)
    except ValueError as ve:
        code = 409 if str(ve) == "username_taken" else 400
        raise HTTPException(status_code=code, detail=str(ve))
    if account is None:
        raise HTTPException(status_code=500, detail="save_failed")
    return _session(account)


@router.post("/api/account/login")
def api_account_login(body: Credentials):
    account = login(body.username, body.password)
    if account is None:
        raise HTTPException(status_code=401, detail="invalid_credentials")
    return _session(account)


@router.post("/api/account/refresh")
def api_account_refresh(body: TokenBody):
    account = authenticate(body.username, body.token)
    if account is None:
        raise HTTPException(status_code=401, detail="invalid_token")
    refreshed = refresh_token(account)
    if refreshed is None:
        raise HTTPException(status_code=500, detail="token_not_saved")
    return _session(refreshed)


@router.post("/api/account/get")
def api_account_get(body: TokenBody):
    account = authenticate(body.username, body.token)
    if account is None:
        raise HTTPException(status_code=401, detail="invalid_token")
    return account.public_dict()


@router.post("/api/account/delete")
def api_account_delete(body: TokenBody):
    try:
        ok = delete_user_account(body.username, body.token)
    except PermissionError as pe:
        raise HTTPException(status_code=401, detail=str(pe))
    if not ok:
        raise HTTPException(status_code=500, detail="delete_failed")
    return {"message": "ok"}
