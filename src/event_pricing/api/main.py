from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from .pricing_api import router as pricing_router

app = FastAPI(
    title="Event Pricing API",
    description="Categories, pricing rules and registration quotes for events",
    version=__version__
)

# Enable CORS for the admin console
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pricing_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Event Pricing API Active"}
