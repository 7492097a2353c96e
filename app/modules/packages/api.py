from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.dependencies import get_db, get_current_admin
from app.schemas import package_schema
from app.modules.packages.service import package_service

router = APIRouter(tags=["Packages"])

admin_router = APIRouter(
    prefix="/admin/packages",
    tags=["Admin Packages"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("/packages", response_model=List[package_schema.Package])
async def list_public_packages(db: AsyncSession = Depends(get_db)):
    return await package_service.list_packages(db)


@admin_router.get("", response_model=List[package_schema.Package])
async def list_packages(db: AsyncSession = Depends(get_db)):
    return await package_service.list_packages(db)


@admin_router.post("", response_model=package_schema.Package, status_code=status.HTTP_201_CREATED)
async def create_package(
    package_data: package_schema.PackageCreate,
    db: AsyncSession = Depends(get_db),
):
    return await package_service.create_package(db, package_data)


@admin_router.put("/{package_id}", response_model=package_schema.Package)
async def update_package(
    package_id: int,
    package_data: package_schema.PackageUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await package_service.update_package(db, package_id, package_data)


@admin_router.delete("/{package_id}")
async def delete_package(package_id: int, db: AsyncSession = Depends(get_db)):
    await package_service.delete_package(db, package_id)
    return {"message": "Package deleted successfully"}
