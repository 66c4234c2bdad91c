# -*- coding: utf-8 -*-
"""
認證路由 - 選擇姓名與角色
"""

from fastapi import APIRouter, Depends, HTTPException, Form
from fastapi.responses import JSONResponse

from ..config import settings
from ..models.user import Actor, Role
from ..services.auth import COOKIE_NAME, create_access_token, require_login

router = APIRouter(prefix="/auth", tags=["認證"])


@router.post("/session")
async def create_session(
    name: str = Form(...),
    role: str = Form(Role.TECHNICIAN.value),
):
    """建立 session（寫入 cookie）"""
    name = name.strip()
    if not name:
        raise HTTPException(status_code=422, detail="請輸入姓名")
    try:
        actor = Actor(name=name, role=Role(role))
    except ValueError:
        raise HTTPException(status_code=422, detail=f"未知的角色：{role}")
    
    response = JSONResponse({"name": actor.name, "role": actor.role.value})
    response.set_cookie(
        key=COOKIE_NAME,
        value=create_access_token(actor),
        httponly=True,
        samesite="lax",
        max_age=settings.SESSION_EXPIRATION_HOURS * 3600,
    )
    return response


@router.post("/logout")
async def logout():
    """登出"""
    response = JSONResponse({"success": True})
    response.delete_cookie(COOKIE_NAME)
    return response


@router.get("/me")
async def me(current_actor: Actor = Depends(require_login)):
    """目前操作者"""
    return {
        "name": current_actor.name,
        "role": current_actor.role.value,
        "role_display_name": current_actor.role_display_name,
    }
