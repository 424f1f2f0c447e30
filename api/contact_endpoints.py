"""
Contact Endpoints.

Anyone may submit the contact form. Reading, marking as read and deleting
messages are admin operations.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_admin
from api.schemas import ContactCreate, ContactOut, MessageOut
from core.auth import Principal
from core.database import get_session
from core.logging_config import get_logger
from core.models import Contact
from services.resource_service import ResourceService

logger = get_logger(__name__)
router = APIRouter(prefix="/contact", tags=["Contact"])


def _contacts(session: AsyncSession) -> ResourceService[Contact]:
    return ResourceService(session, Contact, "Message")


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_contact(
    payload: ContactCreate, session: AsyncSession = Depends(get_session)
):
    """Public contact form"""
    contact = await _contacts(session).create(payload.model_dump())
    logger.info(f"Contact message received from {contact.email}")
    return {"message": "Message sent successfully", "id": contact.id}


@router.get("")
async def list_contacts(
    unread: bool = Query(default=False),
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    contacts = await _contacts(session).list(
        Contact.created_at.desc(),
        where=Contact.read == False if unread else None,  # noqa: E712
    )
    return {"contacts": [ContactOut.model_validate(c) for c in contacts]}


@router.put("/{contact_id}/read")
async def mark_contact_read(
    contact_id: str,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    contact = await _contacts(session).update(contact_id, {"read": True})
    return {"contact": ContactOut.model_validate(contact)}


@router.delete("/{contact_id}", response_model=MessageOut)
async def delete_contact(
    contact_id: str,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    await _contacts(session).delete(contact_id)
    return MessageOut(message="Message deleted successfully")
