from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from backoffice.api.v1.errors import to_http_exception
from backoffice.core.exceptions import LedgerError
from backoffice.db.mongo import get_db
from backoffice.repositories.category_repo import CategoryRepository
from backoffice.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate

router = APIRouter()


@router.get("", response_model=List[CategoryResponse])
async def list_categories(db = Depends(get_db)):
    """List categories by name."""
    categories = await CategoryRepository(db).list_categories()
    return [CategoryResponse.from_category(category) for category in categories]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(category_in: CategoryCreate, db = Depends(get_db)):
    category = await CategoryRepository(db).create_category(category_in)
    return CategoryResponse.from_category(category)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: str, db = Depends(get_db)):
    category = await CategoryRepository(db).get_category(category_id)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return CategoryResponse.from_category(category)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(category_id: str, category_in: CategoryUpdate, db = Depends(get_db)):
    category = await CategoryRepository(db).update_category(category_id, category_in)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return CategoryResponse.from_category(category)


@router.delete("/{category_id}")
async def delete_category(category_id: str, db = Depends(get_db)):
    """Soft delete a category no entry refers to."""
    try:
        deleted = await CategoryRepository(db).soft_delete_category(category_id)
    except LedgerError as exc:
        raise to_http_exception(exc)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return {"success": True}
