"""
认证模块 - 管理员令牌校验

登录与密码管理由站点主应用负责，这里只校验其签发的 JWT。
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.settings import get_settings

# JWT 配置
JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = 24 * 7  # 7 天有效期

# HTTP Bearer 认证
security = HTTPBearer(auto_error=False)


def create_token(jwt_secret: str, subject: str = "admin") -> str:
    """创建 JWT token"""
    issued_at = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=JWT_EXPIRATION_HOURS),
    }
    return jwt.encode(payload, jwt_secret, algorithm=JWT_ALGORITHM)


def decode_token_subject(token: str, jwt_secret: str) -> Optional[str]:
    """验证 JWT token，返回 sub；无效或过期时返回 None"""
    try:
        payload = jwt.decode(token, jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    subject = payload.get("sub")
    return str(subject) if subject else None


def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    验证当前请求是否来自已登录的管理员
    返回管理员标识，用于导入时的作者归属
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="未登录，请先登录",
            headers={"WWW-Authenticate": "Bearer"},
        )

    jwt_secret = get_settings().security.admin_jwt_secret
    if not jwt_secret:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="系统未配置 ADMIN_JWT_SECRET",
        )

    subject = decode_token_subject(credentials.credentials, jwt_secret)
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="登录已过期，请重新登录",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return subject
