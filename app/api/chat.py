"""
Chat assistant endpoint
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from app.middleware.auth_middleware import current_user
from app.models.base import get_db
from app.models.user import User
from app.services.chat_service import ChatService
from app.services.tenant_service import require_dealership_access

router = APIRouter(tags=["chat"])


class ChatBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = Field(min_length=1, max_length=1000)
    dealership_id: Optional[str] = None
    conversation_id: Optional[str] = None


@router.post("/chat")
async def chat(body: ChatBody, db: Session = Depends(get_db), user: User = Depends(current_user)):
    dealership_id = body.dealership_id or user.dealership_id
    dealership = require_dealership_access(db, user, dealership_id) if dealership_id else None
    return ChatService().answer(body.message, dealership=dealership, conversation_id=body.conversation_id)
