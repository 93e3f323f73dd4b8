from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health():
    # Plain body: load balancers probe this without parsing the envelope.
    return {"status": "ok"}
