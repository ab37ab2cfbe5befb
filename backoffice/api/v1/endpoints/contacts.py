from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from backoffice.api.v1.errors import to_http_exception
from backoffice.core.exceptions import LedgerError
from backoffice.db.mongo import get_db
from backoffice.repositories.contact_repo import ContactRepository
from backoffice.schemas.contact import ContactCreate, ContactResponse, ContactUpdate

router = APIRouter()


@router.get("", response_model=List[ContactResponse])
async def list_contacts(db = Depends(get_db)):
    """List contacts by name."""
    contacts = await ContactRepository(db).list_contacts()
    return [ContactResponse.from_contact(contact) for contact in contacts]


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_contact(contact_in: ContactCreate, db = Depends(get_db)):
    contact = await ContactRepository(db).create_contact(contact_in)
    return ContactResponse.from_contact(contact)


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(contact_id: str, db = Depends(get_db)):
    contact = await ContactRepository(db).get_contact(contact_id)
    if not contact:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return ContactResponse.from_contact(contact)


@router.put("/{contact_id}", response_model=ContactResponse)
async def update_contact(contact_id: str, contact_in: ContactUpdate, db = Depends(get_db)):
    contact = await ContactRepository(db).update_contact(contact_id, contact_in)
    if not contact:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return ContactResponse.from_contact(contact)


@router.delete("/{contact_id}")
async def delete_contact(contact_id: str, db = Depends(get_db)):
    """Soft delete a contact no entry refers to."""
    try:
        deleted = await ContactRepository(db).soft_delete_contact(contact_id)
    except LedgerError as exc:
        raise to_http_exception(exc)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return {"success": True}
