# app/ProductPakage/router/products.py
from fastapi import APIRouter, Body, Depends

from ..crud.products import ProductRepository, get_product_repository
from ..schema.product import ProductCreate, ProductDeleted, ProductResponse, ProductUpdate

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=list[ProductResponse], description="Все товары, новые первыми.")
async def get_products(repo: ProductRepository = Depends(get_product_repository)):
    return await repo.list_products()


@router.post("", response_model=ProductResponse, status_code=201, description="Запрос на добавление товара.")
async def create_product(
        data: ProductCreate = Body(...),
        repo: ProductRepository = Depends(get_product_repository)
):
    return await repo.create_product(data)


@router.put("/{product_id}", response_model=ProductResponse, description="Запрос на изменение товара.")
async def edit_product(
        product_id: int,
        data: ProductUpdate = Body(...),
        repo: ProductRepository = Depends(get_product_repository)
):
    return await repo.update_product(product_id, data)


@router.delete("/{product_id}", response_model=ProductDeleted, description="Запрос на удаление товара.")
async def delete_product(
        product_id: int,
        repo: ProductRepository = Depends(get_product_repository)
):
    deleted_id = await repo.delete_product(product_id)
    return {"message": "Product deleted successfully", "id": deleted_id}
