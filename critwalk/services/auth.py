# -*- coding: utf-8 -*-
"""
認證服務 - 姓名 + 角色的 JWT Cookie
"""

import jwt
from datetime import timedelta
from typing import Optional, Dict
from fastapi import Request, HTTPException

from ..clock import utcnow
from ..config import settings
from ..models.user import Actor, Role


# ===================================
# JWT 設定
# ===================================

JWT_SECRET = settings.SECRET_KEY
JWT_ALGORITHM = "HS256"
COOKIE_NAME = "access_token"


def create_access_token(actor: Actor) -> str:
    """建立 JWT Token"""
    now = utcnow()
    payload = {
        "name": actor.name,
        "role": actor.role.value,
        "exp": now + timedelta(hours=settings.SESSION_EXPIRATION_HOURS),
        "iat": now,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict]:
    """解碼 JWT Token"""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


# ===================================
# 從 Cookie 取得目前操作者
# ===================================

def get_current_actor(request: Request) -> Optional[Actor]:
    """從 JWT Cookie 取得目前操作者"""
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        return None
    
    payload = decode_access_token(token)
    if not payload:
        return None
    
    name = (payload.get("name") or "").strip()
    try:
        role = Role(payload.get("role"))
    except ValueError:
        return None
    if not name:
        return None
    
    return Actor(name=name, role=role)


def require_login(request: Request) -> Actor:
    """要求登入"""
    actor = get_current_actor(request)
    if not actor:
        raise HTTPException(status_code=401, detail="請先登入")
    return actor


def require_manager(request: Request) -> Actor:
    """要求主管權限"""
    actor = require_login(request)
    if not actor.is_manager:
        raise HTTPException(status_code=403, detail="需要主管權限")
    return actor
