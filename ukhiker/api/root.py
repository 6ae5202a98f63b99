from fastapi import APIRouter

router = APIRouter(tags=["root"])

@router.get("/")
async def health():
    return {"message": "UkHiker backend is live and connected!"}

@router.get("/api/")
async def api_root():
    return {"message": "UkHiker Trek Booking API"}
