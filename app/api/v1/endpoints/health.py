from fastapi import APIRouter, Request


router = APIRouter()


@router.get("/health")
async def health(request: Request):
    settings = request.app.state.settings
    return {"status": "ok", "live_data": settings.live_data_enabled}
