from fastapi import APIRouter, Depends, Response, status

from biblestudy.models.group import (
    GroupGenerateRequest,
    GroupReshuffleRequest,
    GroupResponse,
    GroupSetResponse,
)
from biblestudy.services.group_service import (
    find_group_for_user,
    generate_group_set,
    get_active_group_set,
    reset_group_set,
    reshuffle_group_set,
    serialize_group,
    serialize_group_set,
)
from biblestudy.services.report_service import export_filename, render_group_set_csv
from biblestudy.utils.dependencies import get_current_admin, get_current_user

router = APIRouter()


@router.post("", response_model=GroupSetResponse, status_code=status.HTTP_201_CREATED)
async def create_groups(
    request: GroupGenerateRequest,
    current_admin: dict = Depends(get_current_admin),
):
    group_set, groups = await generate_group_set(
        group_size=request.group_size,
        seed=request.seed,
        regenerate=request.regenerate,
        created_by=current_admin["uid"],
    )
    return GroupSetResponse(**serialize_group_set(group_set, groups))


@router.post("/reshuffle", response_model=GroupSetResponse)
async def reshuffle_groups(
    request: GroupReshuffleRequest,
    current_admin: dict = Depends(get_current_admin),
):
    group_set, groups = await reshuffle_group_set(
        group_size=request.group_size,
        seed=request.seed,
        created_by=current_admin["uid"],
    )
    return GroupSetResponse(**serialize_group_set(group_set, groups))


@router.get("", response_model=GroupSetResponse)
async def list_groups(current_admin: dict = Depends(get_current_admin)):
    group_set, groups = await get_active_group_set()
    return GroupSetResponse(**serialize_group_set(group_set, groups))


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def reset_groups(current_admin: dict = Depends(get_current_admin)):
    await reset_group_set()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/export")
async def export_groups(current_admin: dict = Depends(get_current_admin)):
    group_set, groups = await get_active_group_set()
    return Response(
        content=render_group_set_csv(group_set, groups),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(group_set)}"'},
    )


@router.get("/me", response_model=GroupResponse)
async def get_my_group(current_user: dict = Depends(get_current_user)):
    group = await find_group_for_user(current_user["uid"])
    return GroupResponse(**serialize_group(group))


@router.get("/health")
async def health():
    return {"status": "ok", "service": "groups"}
