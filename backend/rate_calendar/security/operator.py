"""
操作人标识
写操作需要 X-Operator-Id 请求头，原样记录到 updated_by，不做认证
"""
from typing import Optional
from fastapi import Header, HTTPException, status


def get_current_operator(x_operator_id: Optional[str] = Header(None)) -> str:
    """依赖注入：获取当前操作人ID"""
    if not x_operator_id or not x_operator_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="缺少操作人标识"
        )
    return x_operator_id.strip()
