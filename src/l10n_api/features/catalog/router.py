from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from l10n_api.api.deps import get_catalog_service, get_catalog_service_read
from l10n_api.common.problem_details import validation_error
from l10n_api.core.http import IdentityDep

from .schemas import (
    KeyCreate,
    KeyDetail,
    KeyList,
    KeyOut,
    KeyUpdate,
    ReleaseBundleCreate,
    ReleaseBundleList,
    ReleaseBundleOut,
    ServiceList,
    ServiceOut,
    TranslationCreate,
    TranslationOut,
    TranslationUpdate,
)
from .service import (
    KEY_LIST_LIMIT,
    CatalogService,
    CatalogValidationError,
    KeyConflictError,
    TranslationConflictError,
)

router = APIRouter(tags=["catalog"])

CatalogDep = Annotated[CatalogService, Depends(get_catalog_service)]
CatalogReadDep = Annotated[CatalogService, Depends(get_catalog_service_read)]
KeyPath = Annotated[str, Path(description="Key identifier", alias="keyId")]
TranslationPath = Annotated[str, Path(description="Translation identifier", alias="translationId")]
ServiceCodePath = Annotated[str, Path(description="Service code", alias="serviceCode")]


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@router.get(
    "/services",
    response_model=ServiceList,
    response_model_exclude_none=True,
    summary="List services visible to the caller",
)
def list_services(identity: IdentityDep, catalog: CatalogReadDep) -> ServiceList:
    services = catalog.list_services(identity)
    return ServiceList(items=[ServiceOut.model_validate(item) for item in services])


@router.get(
    "/services/{serviceCode}",
    response_model=ServiceOut,
    response_model_exclude_none=True,
    summary="Retrieve a service",
)
def read_service(
    code: ServiceCodePath,
    identity: IdentityDep,
    catalog: CatalogReadDep,
) -> ServiceOut:
    return ServiceOut.model_validate(catalog.get_service(identity, code))


@router.get(
    "/services/{serviceCode}/release-bundles",
    response_model=ReleaseBundleList,
    response_model_exclude_none=True,
    summary="List release bundles of a service",
)
def list_release_bundles(
    code: ServiceCodePath,
    identity: IdentityDep,
    catalog: CatalogReadDep,
) -> ReleaseBundleList:
    bundles = catalog.list_release_bundles(identity, code)
    return ReleaseBundleList(items=[ReleaseBundleOut.model_validate(item) for item in bundles])


@router.post(
    "/services/{serviceCode}/release-bundles",
    response_model=ReleaseBundleOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Record a release bundle",
)
def create_release_bundle(
    code: ServiceCodePath,
    payload: ReleaseBundleCreate,
    identity: IdentityDep,
    catalog: CatalogDep,
) -> ReleaseBundleOut:
    bundle = catalog.create_release_bundle(identity, code, payload)
    return ReleaseBundleOut.model_validate(bundle)


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


@router.get(
    "/keys",
    response_model=KeyList,
    response_model_exclude_none=True,
    summary="List keys",
)
def list_keys(
    identity: IdentityDep,
    catalog: CatalogReadDep,
    prefix: Annotated[str | None, Query(max_length=255)] = None,
    service: Annotated[str | None, Query(description="Service code")] = None,
    limit: Annotated[int, Query(ge=1, le=KEY_LIST_LIMIT)] = KEY_LIST_LIMIT,
) -> KeyList:
    keys = catalog.list_keys(identity, prefix=prefix, service_code=service, limit=limit)
    return KeyList(items=[KeyOut.model_validate(key) for key in keys])


@router.post(
    "/keys",
    response_model=KeyOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create a key",
)
def create_key(payload: KeyCreate, identity: IdentityDep, catalog: CatalogDep) -> KeyOut:
    try:
        key = catalog.create_key(identity, payload)
    except KeyConflictError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except CatalogValidationError as exc:
        raise validation_error(str(exc), exc.errors) from exc
    return KeyOut.model_validate(key)


@router.get(
    "/keys/{keyId}",
    response_model=KeyDetail,
    response_model_exclude_none=True,
    summary="Retrieve a key with its translations",
)
def read_key(key_id: KeyPath, identity: IdentityDep, catalog: CatalogReadDep) -> KeyDetail:
    return KeyDetail.model_validate(catalog.get_key(identity, key_id))


@router.patch(
    "/keys/{keyId}",
    response_model=KeyOut,
    response_model_exclude_none=True,
    summary="Update a key",
)
def update_key(
    key_id: KeyPath,
    payload: KeyUpdate,
    identity: IdentityDep,
    catalog: CatalogDep,
) -> KeyOut:
    try:
        key = catalog.update_key(identity, key_id, payload)
    except CatalogValidationError as exc:
        raise validation_error(str(exc), exc.errors) from exc
    return KeyOut.model_validate(key)


@router.delete(
    "/keys/{keyId}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a key and its translations",
)
def delete_key(key_id: KeyPath, identity: IdentityDep, catalog: CatalogDep) -> Response:
    catalog.delete_key(identity, key_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/keys/{keyId}/translations",
    response_model=TranslationOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Add a translation to a key",
)
def create_translation(
    key_id: KeyPath,
    payload: TranslationCreate,
    identity: IdentityDep,
    catalog: CatalogDep,
) -> TranslationOut:
    try:
        translation = catalog.create_translation(identity, key_id, payload)
    except TranslationConflictError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return TranslationOut.model_validate(translation)


# ---------------------------------------------------------------------------
# Translations
# ---------------------------------------------------------------------------


@router.get(
    "/translations/{translationId}",
    response_model=TranslationOut,
    response_model_exclude_none=True,
    summary="Retrieve a translation",
)
def read_translation(
    translation_id: TranslationPath,
    identity: IdentityDep,
    catalog: CatalogReadDep,
) -> TranslationOut:
    return TranslationOut.model_validate(catalog.get_translation(identity, translation_id))


@router.put(
    "/translations/{translationId}",
    response_model=TranslationOut,
    response_model_exclude_none=True,
    summary="Update a translation",
)
def update_translation(
    translation_id: TranslationPath,
    payload: TranslationUpdate,
    identity: IdentityDep,
    catalog: CatalogDep,
) -> TranslationOut:
    try:
        translation = catalog.update_translation(identity, translation_id, payload)
    except TranslationConflictError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return TranslationOut.model_validate(translation)


@router.delete(
    "/translations/{translationId}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a translation",
)
def delete_translation(
    translation_id: TranslationPath,
    identity: IdentityDep,
    catalog: CatalogDep,
) -> Response:
    catalog.delete_translation(identity, translation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
